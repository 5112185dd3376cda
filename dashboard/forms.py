import os

from django import forms
from django.contrib.auth.models import User

from .models import ECOSYSTEM_TYPE_CHOICES, ROLE_BUYER, ROLE_CONTRIBUTOR, ROLE_VERIFIER, Project

# Só contribuidores e compradores se podem registar; verificadores são criados pelo Admin
ROLE_CHOICES = [
    (ROLE_CONTRIBUTOR, 'Contributor (submit restoration projects)'),
    (ROLE_BUYER, 'Buyer (purchase carbon credits)'),
]

PROOF_EXTENSIONS = ['.pdf', '.jpg', '.jpeg', '.png', '.doc', '.docx']


# --- UserRegisterForm ---
class UserRegisterForm(forms.ModelForm):
    name = forms.CharField(label='Full Name', min_length=2, max_length=150)
    role = forms.ChoiceField(
        label='Account Type',
        choices=ROLE_CHOICES,
        widget=forms.Select(attrs={'class': 'form-control'})
    )
    password = forms.CharField(label='Password', min_length=8, widget=forms.PasswordInput)
    password2 = forms.CharField(label='Confirm Password', widget=forms.PasswordInput)
    email = forms.EmailField(label='Email', required=True)
    location = forms.CharField(label='Location', max_length=255, required=False)

    class Meta:
        model = User
        fields = ['username', 'email', 'password']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['username'].help_text = None

    def clean_email(self):
        email = self.cleaned_data['email'].lower()
        if not email.endswith('@gmail.com'):
            raise forms.ValidationError("Please use a Gmail address (@gmail.com)")
        if User.objects.filter(email__iexact=email).exists():
            raise forms.ValidationError("Email already registered")
        return email

    def clean(self):
        cleaned_data = super().clean()
        password = cleaned_data.get("password")
        password2 = cleaned_data.get("password2")

        if password and password2 and password != password2:
            raise forms.ValidationError("Passwords do not match.")
        return cleaned_data


# --- Submissão de Projeto ---
class ProjectSubmissionForm(forms.ModelForm):
    class Meta:
        model = Project
        fields = [
            'name',
            'description',
            'location',
            'area',
            'ecosystem_type',
            'plantation_type',
            'proof_file',
        ]
        widgets = {
            'name': forms.TextInput(attrs={'class': 'form-control'}),
            'description': forms.Textarea(attrs={'class': 'form-control', 'rows': 3}),
            'location': forms.TextInput(attrs={'class': 'form-control'}),
            'area': forms.NumberInput(attrs={'class': 'form-control', 'step': '0.01'}),
            'ecosystem_type': forms.Select(attrs={'class': 'form-control'}),
            'plantation_type': forms.TextInput(attrs={'class': 'form-control'}),
        }

    def clean_name(self):
        name = self.cleaned_data['name'].strip()
        if len(name) < 3:
            raise forms.ValidationError("Project name must be at least 3 characters")
        return name

    def clean_description(self):
        description = self.cleaned_data['description'].strip()
        if len(description) < 10:
            raise forms.ValidationError("Description must be at least 10 characters")
        return description

    def clean_location(self):
        location = self.cleaned_data['location'].strip()
        if len(location) < 2:
            raise forms.ValidationError("Location is required")
        return location

    def clean_area(self):
        area = self.cleaned_data['area']
        if area is None or area <= 0:
            raise forms.ValidationError("Area must be positive")
        return area

    def clean_proof_file(self):
        proof = self.cleaned_data.get('proof_file')
        if proof:
            extension = os.path.splitext(proof.name)[1].lower()
            if extension not in PROOF_EXTENSIONS:
                raise forms.ValidationError(
                    "Invalid file type. Only PDF, JPG, PNG, and DOCX files are allowed."
                )
        return proof


# --- Revisão (Verifier) ---
class ProjectReviewForm(forms.Form):
    ACTION_CHOICES = [('approve', 'Approve'), ('reject', 'Reject')]

    action = forms.ChoiceField(choices=ACTION_CHOICES)
    rejection_reason = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 2}))

    def clean(self):
        cleaned_data = super().clean()
        if cleaned_data.get('action') == 'reject' and not cleaned_data.get('rejection_reason'):
            raise forms.ValidationError("A rejection reason is required.")
        return cleaned_data


class AssignVerifierForm(forms.Form):
    verifier = forms.ModelChoiceField(
        queryset=User.objects.filter(groups__name=ROLE_VERIFIER),
        empty_label="--- Select a Verifier ---",
    )


# --- Marketplace ---
class CreditPurchaseForm(forms.Form):
    contributor_id = forms.IntegerField()
    project_id = forms.UUIDField()
    credits = forms.FloatField()

    def clean_credits(self):
        credits = self.cleaned_data['credits']
        if credits <= 0:
            raise forms.ValidationError("Credits must be positive")
        return credits


class BuyerFilterForm(forms.Form):
    credits_min = forms.FloatField(required=False)
    credits_max = forms.FloatField(required=False)
    plantation_type = forms.CharField(required=False)
