from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.shortcuts import render
from django.views.decorators.http import require_GET

from .services import get_ledger_service


@login_required
def view_chain(request):
    """
    Explorador da cadeia (transparência): todos os blocos por ordem de índice,
    com as transações de cada um e o resultado da re-verificação dos hashes.
    Aceita ?project=<id> para mostrar só os blocos que registam esse projeto.
    """
    service = get_ledger_service()
    chain = service.get_chain()
    report = service.verify()

    project_id = request.GET.get('project')
    if project_id:
        chain = [
            block for block in chain
            if any(tx['project_id'] == project_id for tx in block['transactions'])
        ]

    return render(request, 'blockchain/blockchain_explorer.html', {
        'chain': chain,
        'report': report,
        'pending': service.store.pending_transactions(),
        'project_id': project_id,
    })


@require_GET
def api_blocks(request):
    blocks = get_ledger_service().store.all_blocks()
    return JsonResponse([block.as_dict() for block in blocks], safe=False)


@require_GET
def api_block_detail(request, index):
    """Um bloco com as suas transações e o pre-image para verificação independente."""
    store = get_ledger_service().store
    block = store.get_block_by_index(index)
    if block is None:
        return JsonResponse({'error': 'Block not found'}, status=404)

    data = block.as_dict()
    data['transactions'] = [tx.as_dict() for tx in store.transactions_for_block(block.id)]
    return JsonResponse(data)


@require_GET
def api_transactions(request):
    transactions = get_ledger_service().store.all_transactions()
    return JsonResponse([tx.as_dict() for tx in transactions], safe=False)


@require_GET
def api_my_transactions(request):
    if not request.user.is_authenticated:
        return JsonResponse({'error': 'Authentication required'}, status=401)
    transactions = get_ledger_service().store.transactions_for_receiver(request.user.pk)
    return JsonResponse([tx.as_dict() for tx in transactions], safe=False)


@require_GET
def api_export(request):
    return JsonResponse(get_ledger_service().export())


@require_GET
def api_verify(request):
    return JsonResponse(get_ledger_service().verify().as_dict())
