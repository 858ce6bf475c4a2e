import sys
from pathlib import Path

repo_dir = Path(__file__).parent.parent
sys.path.insert(0, str(repo_dir))

pytest_plugins = [
    "tests.fixtures.settings_fixtures",
    "tests.fixtures.scorer_fixtures",
    "tests.fixtures.api_fixtures",
]
