from pathlib import Path

def get_export_dir(root: str = "./exports", name: str = "screener") -> Path:
    """
    Get (and create) export directory for screener output.
    Structure: {root}/{name}/
    """
    path = Path(root) / name
    path.mkdir(parents=True, exist_ok=True)
    return path
