# api_views.py
import json

from django.contrib.auth.models import User
from django.db.models import Sum
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_GET, require_POST

from blockchain.utils import create_certificate

from .decorators import api_role_required
from .forms import BuyerFilterForm, CreditPurchaseForm
from .marketplace import filter_marketplace, marketplace_entry
from .models import (
    ROLE_BUYER, ROLE_CONTRIBUTOR, ROLE_VERIFIER, STATUS_PENDING, STATUS_VERIFIED,
    CreditPurchase, Project, UserProfile, display_name,
)
from .services import PurchaseError, purchase_credits


@require_GET
def get_stats(request):
    """Totais públicos para a landing page."""
    verified = Project.objects.filter(status=STATUS_VERIFIED)
    return JsonResponse({
        'total_projects': Project.objects.count(),
        'verified_projects': verified.count(),
        'total_co2_captured': verified.aggregate(total=Sum('co2_captured'))['total'] or 0,
    })


@require_GET
def list_projects(request):
    data = [project.as_dict() for project in Project.objects.all()]
    return JsonResponse(data, safe=False)


@require_GET
@api_role_required()
def my_projects(request):
    data = [project.as_dict() for project in Project.objects.filter(owner=request.user)]
    return JsonResponse(data, safe=False)


@require_GET
@api_role_required([ROLE_VERIFIER])
def pending_projects(request):
    data = [project.as_dict() for project in Project.objects.filter(status=STATUS_PENDING)]
    return JsonResponse(data, safe=False)


@require_GET
@api_role_required([ROLE_VERIFIER])
def my_reviews(request):
    data = [project.as_dict() for project in Project.objects.filter(verifier=request.user)]
    return JsonResponse(data, safe=False)


@require_GET
def project_certificate(request, project_id):
    project = Project.objects.filter(pk=project_id, status=STATUS_VERIFIED).first()
    if project is None:
        return JsonResponse({'error': 'Verified project not found'}, status=404)
    return JsonResponse(create_certificate(project, timezone.now()))


@require_GET
def list_verifiers(request):
    verifiers = User.objects.filter(groups__name=ROLE_VERIFIER).order_by('username')
    data = [
        {'id': v.pk, 'username': v.username, 'name': display_name(v), 'email': v.email}
        for v in verifiers
    ]
    return JsonResponse(data, safe=False)

# ----------------------------------------------------------------------
# MARKETPLACE
# ----------------------------------------------------------------------


@require_GET
@api_role_required([ROLE_BUYER])
def marketplace(request):
    data = [project.as_dict() for project in filter_marketplace()]
    return JsonResponse(data, safe=False)


@require_GET
@api_role_required([ROLE_BUYER])
def buyer_filter(request):
    form = BuyerFilterForm(request.GET)
    if not form.is_valid():
        return JsonResponse({'error': form.errors}, status=400)

    projects = filter_marketplace(**form.cleaned_data)
    return JsonResponse([marketplace_entry(p) for p in projects], safe=False)


@require_POST
@api_role_required([ROLE_BUYER])
def purchase(request):
    try:
        payload = json.loads(request.body or b'{}')
    except json.JSONDecodeError:
        return JsonResponse({'error': 'Invalid JSON body'}, status=400)

    form = CreditPurchaseForm(payload)
    if not form.is_valid():
        return JsonResponse({'error': form.errors}, status=400)

    try:
        record = purchase_credits(
            request.user,
            form.cleaned_data['contributor_id'],
            form.cleaned_data['project_id'],
            form.cleaned_data['credits'],
        )
    except PurchaseError as e:
        return JsonResponse({'error': str(e)}, status=400)

    return JsonResponse({
        'message': 'Purchase successful',
        'credits_purchased': UserProfile.objects.get(user=request.user).credits_purchased,
        'project': record.project.as_dict(),
        'transaction': record.as_dict(),
    })


@require_GET
@api_role_required([ROLE_BUYER])
def purchase_history(request):
    purchases = CreditPurchase.objects.filter(buyer=request.user).select_related('contributor', 'project')
    data = []
    for p in purchases:
        entry = p.as_dict()
        entry['contributor_name'] = display_name(p.contributor)
        entry['project_name'] = p.project.name
        data.append(entry)
    return JsonResponse(data, safe=False)


@require_GET
@api_role_required([ROLE_CONTRIBUTOR])
def sales_history(request):
    sales = CreditPurchase.objects.filter(contributor=request.user).select_related('buyer', 'project')
    data = []
    for s in sales:
        entry = s.as_dict()
        entry['buyer_name'] = display_name(s.buyer)
        entry['project_name'] = s.project.name
        data.append(entry)
    return JsonResponse(data, safe=False)
