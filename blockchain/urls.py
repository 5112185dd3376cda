from django.urls import path
from . import views

urlpatterns = [
    path('', views.view_chain, name='view_chain'),
    path('api/blocks/', views.api_blocks, name='api_blocks'),
    path('api/blocks/<int:index>/', views.api_block_detail, name='api_block_detail'),
    path('api/transactions/', views.api_transactions, name='api_transactions'),
    path('api/transactions/mine/', views.api_my_transactions, name='api_my_transactions'),
    path('api/export/', views.api_export, name='api_export'),
    path('api/verify/', views.api_verify, name='api_verify'),
]
