from django.contrib import admin

from .models import CreditPurchase, Project, UserProfile


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ('name', 'owner', 'ecosystem_type', 'status', 'lifetime_co2', 'credits_earned', 'verifier')
    list_filter = ('status', 'ecosystem_type')
    search_fields = ('name', 'location')


admin.site.register(UserProfile)
admin.site.register(CreditPurchase)
