"""CLIP inference executed inside the external scoring process."""
