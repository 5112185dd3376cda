from .models import STATUS_VERIFIED, Project


def filter_marketplace(credits_min=None, credits_max=None, plantation_type=None):
    """Verified projects matching the buyer's filters, most credits first."""
    projects = Project.objects.filter(status=STATUS_VERIFIED).select_related('owner')

    if credits_min is not None:
        projects = projects.filter(credits_earned__gte=credits_min)
    if credits_max is not None:
        projects = projects.filter(credits_earned__lte=credits_max)
    if plantation_type:
        projects = projects.filter(plantation_type=plantation_type)

    return projects.order_by('-credits_earned')


def marketplace_entry(project):
    return {
        'id': str(project.pk),
        'name': project.name,
        'location': project.location,
        'area_ha': project.area,
        'plantation_type': project.plantation_type,
        'credits_earned': project.credits_earned,
        'carbon_avoided_tpy': project.annual_co2,
        'contributor_id': project.owner_id,
    }
