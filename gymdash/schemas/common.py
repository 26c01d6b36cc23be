from typing import List

from pydantic import BaseModel, Field


class BulkOperationResult(BaseModel):
    """
    Resultado agregado de una operación masiva (p.ej. notificar a todos).

    aborted indica que la sesión dejó de ser válida a mitad de la operación;
    los envíos no realizados se cuentan en skipped.
    """
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    aborted: bool = False
    errors: List[str] = Field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        return self.failed == 0 and not self.aborted

    def summary(self) -> str:
        if self.aborted:
            return f"Sesión no válida: {self.succeeded} de {self.total} enviados, {self.skipped} sin enviar"
        if self.all_succeeded:
            return f"{self.succeeded} de {self.total} enviados correctamente"
        return f"{self.succeeded} de {self.total} enviados, {self.failed} fallidos"
