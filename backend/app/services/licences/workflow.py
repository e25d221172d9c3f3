from __future__ import annotations

PENDING_REGISTRATION = "pending_registration"
REGISTRATION_IN_PROGRESS = "registration_in_progress"
UNDER_REVIEW = "under_review"
PENDING_APPROVAL = "pending_approval"
APPROVED = "approved"
REJECTED = "rejected"
CANCELED = "canceled"

# ordem do fluxo normal; rejected/canceled ficam fora da sequência
WORKFLOW = (
    PENDING_REGISTRATION,
    REGISTRATION_IN_PROGRESS,
    UNDER_REVIEW,
    PENDING_APPROVAL,
    APPROVED,
)
STATUSES = frozenset(WORKFLOW + (REJECTED, CANCELED))
TERMINAL = frozenset({APPROVED, REJECTED, CANCELED})

# status em que o número da AET precisa existir para a UF
AET_NUMBER_REQUIRED = frozenset({UNDER_REVIEW, PENDING_APPROVAL, APPROVED})

STATUS_LABELS = {
    PENDING_REGISTRATION: "Pedido em Cadastramento",
    REGISTRATION_IN_PROGRESS: "Cadastro em Andamento",
    UNDER_REVIEW: "Análise do Órgão",
    PENDING_APPROVAL: "Pendente Liberação",
    APPROVED: "Liberada",
    REJECTED: "Reprovada",
    CANCELED: "Cancelada",
}


def allowed_next(current: str) -> frozenset[str]:
    if current == APPROVED:
        return frozenset({APPROVED, CANCELED})
    if current in (REJECTED, CANCELED):
        return frozenset({current})
    position = WORKFLOW.index(current) if current in WORKFLOW else 0
    return frozenset(WORKFLOW[position:] + (REJECTED, CANCELED))


def can_transition(current: str, new_status: str) -> bool:
    return new_status in allowed_next(current)
