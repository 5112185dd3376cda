import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.contrib.auth.models import Group, User
from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.shortcuts import get_object_or_404, redirect, render
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.http import require_POST

from blockchain.exceptions import LedgerError

from .carbon import calculate_carbon_sequestration
from .decorators import role_required
from .forms import (
    AssignVerifierForm, BuyerFilterForm, CreditPurchaseForm, ProjectReviewForm,
    ProjectSubmissionForm, UserRegisterForm,
)
from .marketplace import filter_marketplace
from .models import (
    ROLE_ADMIN, ROLE_BUYER, ROLE_CONTRIBUTOR, ROLE_VERIFIER, STATUS_PENDING,
    CreditPurchase, Project, UserProfile, user_role,
)
from .services import PurchaseError, ReviewError, approve_project, purchase_credits, reject_project

logger = logging.getLogger(__name__)

# ----------------------------------------------------------------------
# 1. VIEWS DE ADMIN E AUTENTICAÇÃO
# ----------------------------------------------------------------------


@method_decorator(login_required, name='dispatch')
class AdminDashboardView(View):
    """Root page: Admins get their dashboard, everyone else is redirected to theirs."""

    role_map = {
        ROLE_VERIFIER: 'verifier_dashboard',
        ROLE_CONTRIBUTOR: 'contributor_dashboard',
        ROLE_BUYER: 'buyer_dashboard',
    }

    def get(self, request):
        user = request.user
        role = user_role(user)

        if role == ROLE_ADMIN:
            projects = Project.objects.select_related('owner', 'verifier').order_by('-submitted_at')
            context = {
                'username': user.username,
                'role': ROLE_ADMIN,
                'projects': projects,
                'users': User.objects.prefetch_related('groups').order_by('username'),
                'assign_form': AssignVerifierForm(),
            }
            return render(request, 'dashboard/adminDash.html', context)

        url_name = self.role_map.get(role)
        if url_name:
            return redirect(url_name)

        messages.error(request, "Your account has no role assigned.")
        return redirect('login')


class RegisterView(View):
    def get(self, request):
        form = UserRegisterForm()
        return render(request, 'registration/register.html', {'form': form})

    def post(self, request):
        form = UserRegisterForm(request.POST)

        if form.is_valid():
            with transaction.atomic():
                # 1. User (modelo Django padrão)
                user = form.save(commit=False)
                user.set_password(form.cleaned_data['password'])
                user.save()

                # 2. Perfil
                UserProfile.objects.create(
                    user=user,
                    name=form.cleaned_data['name'],
                    location=form.cleaned_data['location'] or None,
                )

                # 3. Grupo (Role)
                group, _ = Group.objects.get_or_create(name=form.cleaned_data['role'])
                user.groups.add(group)

            logger.info("Registered %s as %s", user.username, form.cleaned_data['role'])
            messages.success(request, "Account created successfully. Please log in.")
            return redirect('login')

        return render(request, 'registration/register.html', {'form': form})

# ----------------------------------------------------------------------
# 2. CONTRIBUTOR
# ----------------------------------------------------------------------


@method_decorator(login_required, name='dispatch')
@method_decorator(role_required([ROLE_CONTRIBUTOR]), name='dispatch')
class ContributorDashboardView(View):
    def get(self, request):
        user = request.user
        projects = Project.objects.filter(owner=user).order_by('-submitted_at')
        sales = CreditPurchase.objects.filter(contributor=user).select_related('buyer', 'project')

        context = {
            'username': user.username,
            'role': ROLE_CONTRIBUTOR,
            'projects': projects,
            'sales': sales,
            'credits_sold': sales.aggregate(total=Sum('credits'))['total'] or 0,
            'project_form': ProjectSubmissionForm(),
            'db_error': request.session.pop('db_error', None),
        }
        return render(request, 'dashboard/contributorDash.html', context)


@login_required
@role_required([ROLE_CONTRIBUTOR])
def contributor_submit_project(request):
    if request.method != 'POST':
        return redirect('contributor_dashboard')

    form = ProjectSubmissionForm(request.POST, request.FILES)
    if not form.is_valid():
        request.session['db_error'] = f"Invalid project submission: {form.errors.as_text()}"
        return redirect('contributor_dashboard')

    try:
        with transaction.atomic():
            project = form.save(commit=False)
            estimate = calculate_carbon_sequestration(project.area, project.ecosystem_type, project.location)
            project.owner = request.user
            project.annual_co2 = estimate.annual_co2
            project.lifetime_co2 = estimate.lifetime_co2
            project.co2_captured = estimate.lifetime_co2
            project.credits_earned = 0
            project.save()
    except IntegrityError as e:
        request.session['db_error'] = f"Could not save the project: {e}"
        return redirect('contributor_dashboard')

    messages.success(
        request,
        f"Project submitted. Estimated {estimate.annual_co2} t CO2/year, {estimate.lifetime_co2} t over 20 years."
    )
    return redirect('contributor_dashboard')

# ----------------------------------------------------------------------
# 3. VERIFIER / ADMIN
# ----------------------------------------------------------------------


@method_decorator(login_required, name='dispatch')
@method_decorator(role_required([ROLE_VERIFIER]), name='dispatch')
class VerifierDashboardView(View):
    def get(self, request):
        user = request.user
        context = {
            'username': user.username,
            'role': ROLE_VERIFIER,
            'pending_projects': Project.objects.filter(status=STATUS_PENDING).select_related('owner'),
            'my_reviews': Project.objects.filter(verifier=user).select_related('owner'),
            'review_form': ProjectReviewForm(),
        }
        return render(request, 'dashboard/verifierDash.html', context)


@login_required
@role_required([ROLE_ADMIN])
@require_POST
def assign_verifier(request, project_id):
    project = get_object_or_404(Project, pk=project_id)
    form = AssignVerifierForm(request.POST)

    if form.is_valid():
        project.verifier = form.cleaned_data['verifier']
        project.save(update_fields=['verifier'])
        messages.success(request, f"{project.verifier.username} assigned to {project.name}.")
    else:
        messages.error(request, f"Invalid verifier: {form.errors.as_text()}")
    return redirect('admin_dashboard')


@login_required
@role_required([ROLE_VERIFIER, ROLE_ADMIN])
@require_POST
def review_project(request, project_id):
    """
    Aprovar ou rejeitar um projeto. A aprovação cria a transação no ledger e
    sela imediatamente todas as transações pendentes num novo bloco.
    """
    project = get_object_or_404(Project, pk=project_id)
    form = ProjectReviewForm(request.POST)
    next_url = 'admin_dashboard' if user_role(request.user) == ROLE_ADMIN else 'verifier_dashboard'

    if not form.is_valid():
        messages.error(request, form.errors.as_text())
        return redirect(next_url)

    if project.verifier_id is None and user_role(request.user) == ROLE_VERIFIER:
        project.verifier = request.user
        project.save(update_fields=['verifier'])

    try:
        if form.cleaned_data['action'] == 'reject':
            reject_project(project, form.cleaned_data['rejection_reason'])
            messages.success(request, f"Project '{project.name}' rejected.")
        else:
            result = approve_project(project)
            block = result.block
            messages.success(
                request,
                f"Project '{project.name}' verified. Transaction {result.transaction.tx_id[:10]}..."
                + (f" sealed in block #{block.index}." if block else "")
            )
    except (ReviewError, LedgerError) as e:
        messages.error(request, f"Review failed: {e}")
    except IntegrityError as e:
        logger.exception("Ledger write failed while reviewing project %s", project.pk)
        messages.error(request, f"Database error while recording the approval: {e}")

    return redirect(next_url)

# ----------------------------------------------------------------------
# 4. BUYER / MARKETPLACE
# ----------------------------------------------------------------------


@method_decorator(login_required, name='dispatch')
@method_decorator(role_required([ROLE_BUYER]), name='dispatch')
class BuyerDashboardView(View):
    def get(self, request):
        user = request.user
        filter_form = BuyerFilterForm(request.GET or None)
        filters = filter_form.cleaned_data if filter_form.is_valid() else {}
        profile, _ = UserProfile.objects.get_or_create(user=user)

        context = {
            'username': user.username,
            'role': ROLE_BUYER,
            'profile': profile,
            'projects': filter_marketplace(**filters),
            'filter_form': filter_form if request.GET else BuyerFilterForm(),
            'purchases': CreditPurchase.objects.filter(buyer=user).select_related('project', 'contributor'),
        }
        return render(request, 'dashboard/buyerDash.html', context)


@login_required
@role_required([ROLE_BUYER])
@require_POST
def buyer_purchase_credits(request):
    form = CreditPurchaseForm(request.POST)
    if not form.is_valid():
        messages.error(request, form.errors.as_text())
        return redirect('buyer_dashboard')

    try:
        purchase = purchase_credits(
            request.user,
            form.cleaned_data['contributor_id'],
            form.cleaned_data['project_id'],
            form.cleaned_data['credits'],
        )
        messages.success(request, f"Purchased {purchase.credits} credits from '{purchase.project.name}'.")
    except PurchaseError as e:
        messages.error(request, str(e))

    return redirect('buyer_dashboard')
