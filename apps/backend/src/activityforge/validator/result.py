"""Validation result model: hard errors block export, warnings never do."""

from typing import Optional

from pydantic import BaseModel, computed_field


class Issue(BaseModel):
    """A single error or warning found in a generated artifact."""

    code: str
    message: str
    path: Optional[str] = None


class ValidationResult(BaseModel):
    errors: list[Issue] = []
    warnings: list[Issue] = []

    @computed_field(alias="isValid")
    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def extend(self, other: "ValidationResult") -> None:
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)

    def error(self, code: str, message: str, path: Optional[str] = None) -> None:
        self.errors.append(Issue(code=code, message=message, path=path))

    def warn(self, code: str, message: str, path: Optional[str] = None) -> None:
        self.warnings.append(Issue(code=code, message=message, path=path))

    def summary(self) -> str:
        lines = [f"{len(self.errors)} error(s), {len(self.warnings)} warning(s)"]
        lines += [f"- [{e.code}] {e.message}" for e in self.errors]
        return "\n".join(lines)
