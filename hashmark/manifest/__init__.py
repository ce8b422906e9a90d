from .store import Manifest, ManifestStore, load_manifest, save_manifest

__all__ = ["Manifest", "ManifestStore", "load_manifest", "save_manifest"]
