"""Output package: export of stage artifacts."""

from erpro.outputs.export import export_artifacts

__all__ = ["export_artifacts"]
