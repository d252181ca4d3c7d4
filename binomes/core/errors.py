# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Service-level exceptions mapped to HTTP statuses by the controllers."""


class CycleConflictError(RuntimeError):
    """Another writer changed the section's active cycle while we were rotating."""

    def __init__(self, section_id: str, detail: str = "active cycle changed concurrently"):
        super().__init__(f"Section '{section_id}': {detail}")
        self.section_id = section_id
