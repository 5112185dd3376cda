from django.urls import path
from django.contrib.auth import views as auth_views

from . import views
from . import api_views

urlpatterns = [
    # 1. Rota Principal (redirecionador por role)
    path('', views.AdminDashboardView.as_view(), name='admin_dashboard'),

    # 2. Dashboards
    path('contributor/', views.ContributorDashboardView.as_view(), name='contributor_dashboard'),
    path('verifier/', views.VerifierDashboardView.as_view(), name='verifier_dashboard'),
    path('marketplace/', views.BuyerDashboardView.as_view(), name='buyer_dashboard'),

    # 3. Submissões
    path('projects/submit/', views.contributor_submit_project, name='contributor_submit_project'),
    path('projects/<uuid:project_id>/assign/', views.assign_verifier, name='assign_verifier'),
    path('projects/<uuid:project_id>/review/', views.review_project, name='review_project'),
    path('credits/purchase/', views.buyer_purchase_credits, name='buyer_purchase_credits'),

    # 4. APIs
    path('api/stats/', api_views.get_stats, name='api_stats'),
    path('api/projects/', api_views.list_projects, name='api_projects'),
    path('api/projects/mine/', api_views.my_projects, name='api_my_projects'),
    path('api/projects/pending/', api_views.pending_projects, name='api_pending_projects'),
    path('api/projects/reviews/', api_views.my_reviews, name='api_my_reviews'),
    path('api/projects/marketplace/', api_views.marketplace, name='api_marketplace'),
    path('api/projects/<uuid:project_id>/certificate/', api_views.project_certificate, name='api_certificate'),
    path('api/buyer/filter/', api_views.buyer_filter, name='api_buyer_filter'),
    path('api/credits/purchase/', api_views.purchase, name='api_purchase'),
    path('api/credits/purchases/', api_views.purchase_history, name='api_purchase_history'),
    path('api/credits/sales/', api_views.sales_history, name='api_sales_history'),
    path('api/verifiers/', api_views.list_verifiers, name='api_verifiers'),

    # 5. Autenticação
    path('accounts/register/', views.RegisterView.as_view(), name='register'),
    path('accounts/logout/', auth_views.LogoutView.as_view(), name='logout'),
]
