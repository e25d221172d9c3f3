from __future__ import annotations

from typing import Any, Dict


class AppError(Exception):
    """Base for errors raised by the licence services and surfaced to callers."""

    default_code = "app_error"
    default_message = "Não foi possível concluir a operação"
    default_http_status = 500

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        http_status: int | None = None,
        payload: Dict[str, Any] | None = None,
    ) -> None:
        self.message = (message or self.default_message).strip()
        self.code = (code or self.default_code).strip()
        self.http_status = int(http_status or self.default_http_status)
        self.payload = dict(payload or {})
        super().__init__(self.message)

    def to_response_payload(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.payload:
            body.update(self.payload)
        return body


class NotFoundError(AppError):
    default_code = "not_found"
    default_message = "Registro não encontrado"
    default_http_status = 404


class InvalidStateError(AppError):
    default_code = "invalid_state"
    default_message = "Estado não incluído na solicitação da licença"
    default_http_status = 400


class ValidationError(AppError):
    default_code = "validation_error"
    default_message = "Dados inválidos"
    default_http_status = 422


class DuplicatePermitNumberError(AppError):
    default_code = "duplicate_permit_number"
    default_message = "Número de AET já utilizado"
    default_http_status = 409


class ConflictBlockedError(AppError):
    default_code = "license_conflict"
    default_message = "Já existe licença vigente para os mesmos estados e placas"
    default_http_status = 409


class PermissionDeniedError(AppError):
    default_code = "permission_denied"
    default_message = "Acesso negado"
    default_http_status = 403


class SyncFailure(Exception):
    """Ledger synchronisation failed after the status change was committed."""

    def __init__(self, licence_id: int, state: str, cause: Exception) -> None:
        self.licence_id = licence_id
        self.state = state
        self.cause = cause
        super().__init__(f"ledger sync failed licence_id={licence_id} state={state}: {cause}")


class BroadcastFailure(Exception):
    """A single realtime push could not be delivered."""
