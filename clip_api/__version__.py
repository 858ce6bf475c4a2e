from pathlib import Path


def get_version():
    """Get version from _version file or fallback to default"""
    version_file = Path(__file__).parent / "_version"
    if version_file.exists():
        return version_file.read_text().strip()
    return "2.0.0"


__version__ = get_version()
