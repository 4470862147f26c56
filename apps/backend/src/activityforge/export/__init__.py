from .archive import ExportBlockedError, ExportBundle, bundle_files, export_activity, write_zip

__all__ = ["ExportBlockedError", "ExportBundle", "bundle_files", "export_activity", "write_zip"]
