from functools import wraps

from django.contrib.auth.decorators import user_passes_test
from django.http import JsonResponse

from .models import ROLE_ADMIN


def has_role(user, role_names):
    if not user.is_authenticated:
        return False
    if user.is_superuser:
        return True  # Superuser passa sempre
    return user.groups.filter(name__in=role_names).exists()


def role_required(role_names):
    """
    Decorator que verifica se o utilizador logado pertence a UM dos grupos fornecidos.
    role_names deve ser uma lista ou tuplo (ex: ['Admin', 'Verifier']).
    """
    def check_user_role(user):
        return has_role(user, role_names)

    # Se o teste falhar, redireciona para a página principal
    return user_passes_test(check_user_role, login_url='/')


def api_role_required(role_names=None):
    """JSON variant for the API views: 401 when anonymous, 403 when the role is missing."""
    def decorator(view_func):
        @wraps(view_func)
        def wrapped(request, *args, **kwargs):
            if not request.user.is_authenticated:
                return JsonResponse({'error': 'Authentication required'}, status=401)
            if role_names and not has_role(request.user, list(role_names) + [ROLE_ADMIN]):
                return JsonResponse({'error': 'Insufficient permissions'}, status=403)
            return view_func(request, *args, **kwargs)
        return wrapped
    return decorator
