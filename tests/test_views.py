import pytest
from django.contrib.auth.models import User
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse

from blockchain.models import LedgerBlock, LedgerTransaction
from dashboard.models import (
    ROLE_CONTRIBUTOR, STATUS_PENDING, STATUS_REJECTED, STATUS_VERIFIED, CreditPurchase, Project, UserProfile,
)
from dashboard.services import (
    PurchaseError, ReviewError, approve_project, purchase_credits, reject_project,
)


# ----------------------------------------------------------------------
# Registo e dashboards
# ----------------------------------------------------------------------

@pytest.mark.django_db
def test_register_creates_user_profile_and_role(client):
    response = client.post(reverse('register'), {
        'username': 'carol',
        'email': 'Carol@gmail.com',
        'name': 'Carol Reef',
        'role': ROLE_CONTRIBUTOR,
        'password': 'seagrass-2024',
        'password2': 'seagrass-2024',
        'location': 'Fiji',
    })

    assert response.status_code == 302
    assert response.url == reverse('login')
    user = User.objects.get(username='carol')
    assert user.email == 'carol@gmail.com'
    assert user.check_password('seagrass-2024')
    assert user.groups.filter(name=ROLE_CONTRIBUTOR).exists()
    assert user.profile.name == 'Carol Reef'


@pytest.mark.django_db
def test_register_rejects_non_gmail_address(client):
    response = client.post(reverse('register'), {
        'username': 'dave',
        'email': 'dave@example.com',
        'name': 'Dave',
        'role': ROLE_CONTRIBUTOR,
        'password': 'longenough',
        'password2': 'longenough',
    })

    assert response.status_code == 200
    assert 'Gmail' in response.content.decode()
    assert not User.objects.filter(username='dave').exists()


def test_register_rejects_duplicate_email(client, contributor):
    response = client.post(reverse('register'), {
        'username': 'alice2',
        'email': 'alice@gmail.com',
        'name': 'Alice Again',
        'role': ROLE_CONTRIBUTOR,
        'password': 'longenough',
        'password2': 'longenough',
    })

    assert response.status_code == 200
    assert 'Email already registered' in response.content.decode()


def test_root_redirects_by_role(client, contributor, verifier, buyer):
    expectations = [
        (contributor, 'contributor_dashboard'),
        (verifier, 'verifier_dashboard'),
        (buyer, 'buyer_dashboard'),
    ]
    for user, url_name in expectations:
        client.force_login(user)
        response = client.get(reverse('admin_dashboard'))
        assert response.status_code == 302
        assert response.url == reverse(url_name)


def test_admin_sees_admin_dashboard(client, admin_user, contributor, make_project):
    make_project(contributor)
    client.force_login(admin_user)

    response = client.get(reverse('admin_dashboard'))

    assert response.status_code == 200
    assert 'Mangrove Bay' in response.content.decode()


def test_dashboards_render_for_their_roles(client, contributor, verifier, buyer, make_project):
    make_project(contributor, status=STATUS_VERIFIED)

    for user, url_name in [(contributor, 'contributor_dashboard'),
                           (verifier, 'verifier_dashboard'),
                           (buyer, 'buyer_dashboard')]:
        client.force_login(user)
        assert client.get(reverse(url_name)).status_code == 200


def test_wrong_role_is_sent_away(client, buyer):
    client.force_login(buyer)

    response = client.get(reverse('contributor_dashboard'))

    assert response.status_code == 302


# ----------------------------------------------------------------------
# Submissão
# ----------------------------------------------------------------------

def test_contributor_submits_project_with_estimate(client, contributor, settings, tmp_path):
    settings.MEDIA_ROOT = str(tmp_path)
    client.force_login(contributor)

    response = client.post(reverse('contributor_submit_project'), {
        'name': 'Lamu Mangroves',
        'description': 'Replanting mangroves on the Lamu archipelago.',
        'location': 'Lamu, Kenya',
        'area': '10',
        'ecosystem_type': 'Mangrove',
        'plantation_type': 'Rhizophora',
        'proof_file': SimpleUploadedFile('survey.pdf', b'%PDF-1.4 survey', content_type='application/pdf'),
    })

    assert response.status_code == 302
    project = Project.objects.get(name='Lamu Mangroves')
    assert project.owner == contributor
    assert project.status == STATUS_PENDING
    assert project.annual_co2 == 96.0
    assert project.lifetime_co2 == 1920.0
    assert project.co2_captured == 1920.0
    assert project.credits_earned == 0
    assert project.proof_reference.startswith('proofs/')


def test_invalid_submission_is_reported(client, contributor):
    client.force_login(contributor)

    response = client.post(reverse('contributor_submit_project'), {
        'name': 'X',
        'description': 'short',
        'location': 'Kenya',
        'area': '-1',
        'ecosystem_type': 'Mangrove',
    })

    assert response.status_code == 302
    assert Project.objects.count() == 0
    assert 'Invalid project submission' in client.session['db_error']


def test_submission_rejects_unsupported_proof_type(client, contributor, settings, tmp_path):
    settings.MEDIA_ROOT = str(tmp_path)
    client.force_login(contributor)

    client.post(reverse('contributor_submit_project'), {
        'name': 'Seagrass Meadow',
        'description': 'Seagrass restoration in the bay.',
        'location': 'Brittany, France',
        'area': '4',
        'ecosystem_type': 'Seagrass',
        'proof_file': SimpleUploadedFile('payload.exe', b'MZ'),
    })

    assert Project.objects.count() == 0


# ----------------------------------------------------------------------
# Revisão e ledger
# ----------------------------------------------------------------------

def test_verifier_approval_records_and_seals_transaction(client, ledger_service, contributor, verifier, make_project):
    project = make_project(contributor)
    client.force_login(verifier)

    response = client.post(reverse('review_project', args=[project.pk]), {'action': 'approve'})

    assert response.status_code == 302
    assert response.url == reverse('verifier_dashboard')
    project.refresh_from_db()
    assert project.status == STATUS_VERIFIED
    assert project.credits_earned == project.lifetime_co2
    assert project.verifier == verifier

    tx = LedgerTransaction.objects.get(project_id=str(project.pk))
    assert tx.receiver == str(contributor.pk)
    assert tx.sender == 'system'
    assert tx.credits == project.co2_captured
    assert tx.block is not None
    assert tx.block.index == 0
    assert ledger_service.verify().valid


def test_approvals_chain_blocks(client, ledger_service, contributor, verifier, make_project):
    client.force_login(verifier)
    for name in ('Project One', 'Project Two'):
        project = make_project(contributor, name=name)
        client.post(reverse('review_project', args=[project.pk]), {'action': 'approve'})

    blocks = list(LedgerBlock.objects.order_by('index'))
    assert [b.index for b in blocks] == [0, 1]
    assert blocks[1].previous_hash == blocks[0].block_hash


def test_project_cannot_be_approved_twice(client, ledger_service, contributor, verifier, make_project):
    project = make_project(contributor)
    client.force_login(verifier)

    client.post(reverse('review_project', args=[project.pk]), {'action': 'approve'})
    client.post(reverse('review_project', args=[project.pk]), {'action': 'approve'})

    assert LedgerTransaction.objects.count() == 1
    assert LedgerBlock.objects.count() == 1


def test_stale_copies_cannot_approve_twice(ledger_service, contributor, make_project):
    project = make_project(contributor)
    first = Project.objects.get(pk=project.pk)
    second = Project.objects.get(pk=project.pk)

    approve_project(first)
    with pytest.raises(ReviewError):
        approve_project(second)

    assert LedgerTransaction.objects.filter(project_id=str(project.pk)).count() == 1
    assert LedgerBlock.objects.count() == 1
    assert first.status == STATUS_VERIFIED


def test_stale_copy_cannot_reject_approved_project(ledger_service, contributor, make_project):
    project = make_project(contributor)
    stale = Project.objects.get(pk=project.pk)

    approve_project(project)
    with pytest.raises(ReviewError):
        reject_project(stale, 'Too late')

    project.refresh_from_db()
    assert project.status == STATUS_VERIFIED


def test_rejection_needs_reason(client, ledger_service, contributor, verifier, make_project):
    project = make_project(contributor)
    client.force_login(verifier)

    client.post(reverse('review_project', args=[project.pk]), {'action': 'reject'})
    project.refresh_from_db()
    assert project.status == STATUS_PENDING

    client.post(reverse('review_project', args=[project.pk]),
                {'action': 'reject', 'rejection_reason': 'Boundary map missing'})
    project.refresh_from_db()
    assert project.status == STATUS_REJECTED
    assert project.rejection_reason == 'Boundary map missing'
    assert LedgerTransaction.objects.count() == 0


def test_contributor_cannot_review(client, ledger_service, contributor, make_project):
    project = make_project(contributor)
    client.force_login(contributor)

    response = client.post(reverse('review_project', args=[project.pk]), {'action': 'approve'})

    assert response.status_code == 302
    project.refresh_from_db()
    assert project.status == STATUS_PENDING
    assert LedgerTransaction.objects.count() == 0


def test_admin_assigns_verifier(client, admin_user, contributor, verifier, make_project):
    project = make_project(contributor)
    client.force_login(admin_user)

    response = client.post(reverse('assign_verifier', args=[project.pk]), {'verifier': verifier.pk})

    assert response.status_code == 302
    project.refresh_from_db()
    assert project.verifier == verifier


# ----------------------------------------------------------------------
# Marketplace
# ----------------------------------------------------------------------

def purchase_payload(project, credits):
    return {'contributor_id': project.owner_id, 'project_id': str(project.pk), 'credits': credits}


def test_buyer_purchases_credits(client, buyer, contributor, make_project):
    project = make_project(contributor, status=STATUS_VERIFIED)
    client.force_login(buyer)

    response = client.post(reverse('api_purchase'), purchase_payload(project, 100),
                           content_type='application/json')

    assert response.status_code == 200
    body = response.json()
    assert body['message'] == 'Purchase successful'
    assert body['credits_purchased'] == 100
    assert body['project']['credits_earned'] == project.lifetime_co2 - 100
    project.refresh_from_db()
    assert project.credits_earned == project.lifetime_co2 - 100
    assert UserProfile.objects.get(user=buyer).credits_purchased == 100
    assert CreditPurchase.objects.filter(buyer=buyer, project=project).count() == 1


def test_purchase_form_view(client, buyer, contributor, make_project):
    project = make_project(contributor, status=STATUS_VERIFIED)
    client.force_login(buyer)

    response = client.post(reverse('buyer_purchase_credits'), purchase_payload(project, 50))

    assert response.status_code == 302
    project.refresh_from_db()
    assert project.credits_earned == project.lifetime_co2 - 50


@pytest.mark.parametrize('status, credits, error', [
    (STATUS_PENDING, 10, 'Project must be verified to purchase credits'),
    (STATUS_VERIFIED, 10 ** 6, 'Insufficient credits available'),
])
def test_purchase_rules(client, buyer, contributor, make_project, status, credits, error):
    project = make_project(contributor, status=status)
    client.force_login(buyer)

    response = client.post(reverse('api_purchase'), purchase_payload(project, credits),
                           content_type='application/json')

    assert response.status_code == 400
    assert response.json()['error'] == error
    assert CreditPurchase.objects.count() == 0


def test_purchase_from_wrong_contributor(client, buyer, contributor, make_user, make_project):
    other = make_user('carol', ROLE_CONTRIBUTOR)
    project = make_project(contributor, status=STATUS_VERIFIED)
    client.force_login(buyer)

    payload = purchase_payload(project, 10)
    payload['contributor_id'] = other.pk
    response = client.post(reverse('api_purchase'), payload, content_type='application/json')

    assert response.status_code == 400
    assert response.json()['error'] == 'Project does not belong to this contributor'


def test_purchase_rejects_non_positive_credits(client, buyer, contributor, make_project):
    project = make_project(contributor, status=STATUS_VERIFIED)
    client.force_login(buyer)

    response = client.post(reverse('api_purchase'), purchase_payload(project, 0),
                           content_type='application/json')

    assert response.status_code == 400


def test_only_buyers_can_purchase(contributor, make_project):
    project = make_project(contributor, status=STATUS_VERIFIED)

    with pytest.raises(PurchaseError, match='Invalid buyer'):
        purchase_credits(contributor, contributor.pk, project.pk, 10)


def test_purchase_api_requires_login_and_role(client, contributor, make_project):
    project = make_project(contributor, status=STATUS_VERIFIED)
    payload = purchase_payload(project, 10)

    assert client.post(reverse('api_purchase'), payload, content_type='application/json').status_code == 401

    client.force_login(contributor)
    assert client.post(reverse('api_purchase'), payload, content_type='application/json').status_code == 403


def test_buyer_filter(client, buyer, contributor, make_project):
    make_project(contributor, name='Small', area=1, status=STATUS_VERIFIED, plantation_type='Avicennia')
    make_project(contributor, name='Large', area=50, status=STATUS_VERIFIED, plantation_type='Rhizophora')
    make_project(contributor, name='Unverified', area=80)
    client.force_login(buyer)

    everything = client.get(reverse('api_buyer_filter')).json()
    large = client.get(reverse('api_buyer_filter'), {'credits_min': 1000}).json()
    avicennia = client.get(reverse('api_buyer_filter'), {'plantation_type': 'Avicennia'}).json()

    assert [p['name'] for p in everything] == ['Large', 'Small']
    assert [p['name'] for p in large] == ['Large']
    assert [p['name'] for p in avicennia] == ['Small']
    assert everything[0]['contributor_id'] == contributor.pk
    assert set(everything[0]) == {
        'id', 'name', 'location', 'area_ha', 'plantation_type', 'credits_earned',
        'carbon_avoided_tpy', 'contributor_id',
    }


def test_purchase_and_sales_history(client, buyer, contributor, make_project):
    project = make_project(contributor, status=STATUS_VERIFIED)
    purchase_credits(buyer, contributor.pk, project.pk, 25)

    client.force_login(buyer)
    purchases = client.get(reverse('api_purchase_history')).json()
    client.force_login(contributor)
    sales = client.get(reverse('api_sales_history')).json()

    assert purchases[0]['credits'] == 25
    assert purchases[0]['project_name'] == project.name
    assert sales[0]['buyer_name'] == 'Bob'


# ----------------------------------------------------------------------
# API pública e certificados
# ----------------------------------------------------------------------

def test_stats_and_project_listing(client, contributor, make_project):
    make_project(contributor, status=STATUS_VERIFIED)
    make_project(contributor, name='Pending Marsh')

    stats = client.get(reverse('api_stats')).json()
    projects = client.get(reverse('api_projects')).json()

    assert stats['total_projects'] == 2
    assert stats['verified_projects'] == 1
    assert stats['total_co2_captured'] == 1920.0
    assert len(projects) == 2


def test_certificate_links_ledger_entry(client, ledger_service, contributor, verifier, make_project):
    project = make_project(contributor)
    client.force_login(verifier)
    client.post(reverse('review_project', args=[project.pk]), {'action': 'approve'})
    client.logout()

    certificate = client.get(reverse('api_certificate', args=[project.pk])).json()

    tx = LedgerTransaction.objects.get(project_id=str(project.pk))
    assert certificate['certificate_id'] == f'BC-{project.pk}'
    assert certificate['transaction_id'] == tx.tx_id
    assert certificate['block_hash'] == tx.block.block_hash
    assert certificate['block_index'] == 0


def test_certificate_needs_verified_project(client, contributor, make_project):
    project = make_project(contributor)

    response = client.get(reverse('api_certificate', args=[project.pk]))

    assert response.status_code == 404


def test_role_scoped_project_lists(client, contributor, verifier, make_project):
    make_project(contributor, name='Mine')

    client.force_login(contributor)
    mine = client.get(reverse('api_my_projects')).json()
    assert client.get(reverse('api_pending_projects')).status_code == 403

    client.force_login(verifier)
    pending = client.get(reverse('api_pending_projects')).json()
    verifiers = client.get(reverse('api_verifiers')).json()

    assert [p['name'] for p in mine] == ['Mine']
    assert [p['name'] for p in pending] == ['Mine']
    assert [v['username'] for v in verifiers] == ['verifier1']


# ----------------------------------------------------------------------
# Explorador e API do ledger
# ----------------------------------------------------------------------

def test_chain_api(client, ledger_service, contributor, verifier, make_project):
    project = make_project(contributor)
    client.force_login(verifier)
    client.post(reverse('review_project', args=[project.pk]), {'action': 'approve'})

    blocks = client.get(reverse('api_blocks')).json()
    detail = client.get(reverse('api_block_detail', args=[0])).json()
    verify = client.get(reverse('api_verify')).json()
    export = client.get(reverse('api_export')).json()

    assert len(blocks) == 1
    assert blocks[0]['previous_hash'] == '0000000000000000'
    assert detail['transactions'][0]['project_id'] == str(project.pk)
    assert verify == {'valid': True, 'integrity': 'verified', 'block_count': 1, 'problems': []}
    assert export['total_blocks'] == 1
    assert export['total_projects'] == 1
    assert client.get(reverse('api_block_detail', args=[5])).status_code == 404


def test_my_transactions(client, ledger_service, contributor, verifier, make_project):
    project = make_project(contributor)
    client.force_login(verifier)
    client.post(reverse('review_project', args=[project.pk]), {'action': 'approve'})
    client.logout()

    assert client.get(reverse('api_my_transactions')).status_code == 401

    client.force_login(contributor)
    mine = client.get(reverse('api_my_transactions')).json()
    assert [tx['project_id'] for tx in mine] == [str(project.pk)]


def test_explorer_page(client, ledger_service, contributor, verifier, make_project):
    project = make_project(contributor)
    client.force_login(verifier)
    client.post(reverse('review_project', args=[project.pk]), {'action': 'approve'})
    block = LedgerBlock.objects.get()

    response = client.get(reverse('view_chain'))
    filtered = client.get(reverse('view_chain'), {'project': 'someone-else'})

    assert response.status_code == 200
    assert block.block_hash in response.content.decode()
    assert response.context['report'].valid
    assert filtered.context['chain'] == []


def test_explorer_requires_login(client, db):
    response = client.get(reverse('view_chain'))

    assert response.status_code == 302
