from django.contrib import admin

from .models import LedgerBlock, LedgerTransaction


class ReadOnlyAdmin(admin.ModelAdmin):
    # O ledger é append-only: nada se edita ou apaga pelo admin
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(LedgerBlock)
class LedgerBlockAdmin(ReadOnlyAdmin):
    list_display = ('index', 'block_hash', 'previous_hash', 'transaction_count', 'timestamp')


@admin.register(LedgerTransaction)
class LedgerTransactionAdmin(ReadOnlyAdmin):
    list_display = ('tx_id', 'receiver', 'credits', 'project_id', 'block', 'timestamp')
    list_filter = ('block',)
