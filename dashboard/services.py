import logging

from django.contrib.auth.models import User
from django.db import transaction

from blockchain.services import get_ledger_service
from blockchain.utils import approval_event_for

from .models import (
    ROLE_BUYER, ROLE_CONTRIBUTOR, STATUS_PENDING, STATUS_REJECTED, STATUS_VERIFIED,
    CreditPurchase, Project, UserProfile, user_role,
)

logger = logging.getLogger(__name__)


class ReviewError(Exception):
    pass


class PurchaseError(Exception):
    pass


def reject_project(project, reason):
    with transaction.atomic():
        locked = Project.objects.select_for_update().get(pk=project.pk)
        if locked.status != STATUS_PENDING:
            raise ReviewError(f"Project is already {locked.status}")
        locked.status = STATUS_REJECTED
        locked.rejection_reason = reason
        locked.save(update_fields=['status', 'rejection_reason'])

    project.status = locked.status
    project.rejection_reason = locked.rejection_reason
    logger.info("Project %s rejected", project.pk)
    return project


def approve_project(project):
    """
    Aprovar um projeto: regista a transação no ledger (e sela o bloco) e
    liberta os créditos para o marketplace.
    """
    with transaction.atomic():
        # Estado lido da linha bloqueada: duas revisões em paralelo não aprovam duas vezes
        locked = Project.objects.select_for_update().get(pk=project.pk)
        if locked.status != STATUS_PENDING:
            raise ReviewError(f"Project is already {locked.status}")

        # 1. Ledger primeiro: um evento inválido não deixa o projeto verificado
        result = get_ledger_service().record_approval(approval_event_for(locked))

        # 2. Créditos disponíveis para venda
        locked.status = STATUS_VERIFIED
        locked.credits_earned = locked.lifetime_co2
        locked.save(update_fields=['status', 'credits_earned'])

    project.status = locked.status
    project.credits_earned = locked.credits_earned

    logger.info("Project %s verified, transaction %s", project.pk, result.transaction.tx_id)
    return result


def purchase_credits(buyer, contributor_id, project_id, credits):
    """
    Transferência atómica de créditos de um projeto verificado para o comprador.
    Devolve o registo ``CreditPurchase`` criado.
    """
    try:
        credits = float(credits)
    except (TypeError, ValueError):
        raise PurchaseError("Credits must be a number")

    with transaction.atomic():
        if user_role(buyer) != ROLE_BUYER:
            raise PurchaseError("Invalid buyer")

        contributor = User.objects.filter(pk=contributor_id).first()
        if contributor is None or user_role(contributor) != ROLE_CONTRIBUTOR:
            raise PurchaseError("Invalid contributor")

        project = Project.objects.select_for_update().filter(pk=project_id).first()
        if project is None:
            raise PurchaseError("Project not found")
        if project.owner_id != contributor.pk:
            raise PurchaseError("Project does not belong to this contributor")
        if project.status != STATUS_VERIFIED:
            raise PurchaseError("Project must be verified to purchase credits")
        if credits <= 0:
            raise PurchaseError("Credits must be positive")
        if (project.credits_earned or 0) < credits:
            raise PurchaseError("Insufficient credits available")

        profile, _ = UserProfile.objects.select_for_update().get_or_create(user=buyer)

        project.credits_earned = (project.credits_earned or 0) - credits
        project.save(update_fields=['credits_earned'])
        profile.credits_purchased = (profile.credits_purchased or 0) + credits
        profile.save(update_fields=['credits_purchased'])

        purchase = CreditPurchase.objects.create(
            buyer=buyer,
            contributor=contributor,
            project=project,
            credits=credits,
        )

    logger.info("%s bought %s credits from project %s", buyer.username, credits, project.pk)
    return purchase
