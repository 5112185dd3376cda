from .records import ApprovalEvent
from .services import get_ledger_service


def approval_event_for(project):
    """
    Evento de aprovação para um projeto revisto.
    Os créditos registados no ledger são o CO2 capturado (tempo de vida).
    """
    return ApprovalEvent(
        project_id=str(project.pk),
        user_id=str(project.owner_id),
        credit_amount=project.co2_captured,
        proof_reference=project.proof_reference,
        verifier_id=str(project.verifier_id) if project.verifier_id else None,
    )


def create_certificate(project, issued_at):
    """
    Certificado de um projeto verificado, ligado à transação e ao bloco
    que registaram a aprovação.
    """
    tx, block = get_ledger_service().certificate_entry(project.pk)

    return {
        "certificate_id": f"BC-{project.pk}",
        "project_name": project.name,
        "project_description": project.description,
        "co2_captured": project.co2_captured,
        "status": project.status,
        "submitted_at": project.submitted_at.isoformat() if project.submitted_at else None,
        "transaction_id": tx.tx_id if tx else "N/A",
        "block_hash": block.block_hash if block else "N/A",
        "block_index": block.index if block else None,
        "issued_at": issued_at.isoformat(),
    }
