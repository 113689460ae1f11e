from django import forms
from django.contrib.auth import authenticate, get_user_model
from django.contrib.auth.forms import AuthenticationForm, UserChangeForm, UserCreationForm
from django.core.exceptions import ValidationError

User = get_user_model()

STAFF_FIELDS = ('username', 'email', 'full_name', 'school_name', 'role', 'phone_number')


def split_subjects(raw):
    """'Biology, Chemistry, Biology' -> ['Biology', 'Chemistry']"""
    names = (part.strip() for part in (raw or '').split(','))
    return list(dict.fromkeys(name for name in names if name))


class StaffAccountForm(UserCreationForm):
    """Used by administrators to open an admin or teacher account."""

    email = forms.EmailField()
    full_name = forms.CharField(max_length=150)
    role = forms.ChoiceField(choices=User.ROLE_CHOICES, initial=User.ROLE_TEACHER)
    subjects = forms.CharField(required=False, help_text='Subjects taught, separated by commas')

    class Meta:
        model = User
        fields = STAFF_FIELDS + ('password1', 'password2')

    def clean_email(self):
        email = self.cleaned_data['email'].lower()
        if User.objects.filter(email__iexact=email).exists():
            raise ValidationError("An account with this email already exists.")
        return email

    def clean_subjects(self):
        return split_subjects(self.cleaned_data.get('subjects'))

    def save(self, commit=True):
        user = super().save(commit=False)
        # Picked up by the post_save handler in core.signals
        user._initial_subjects = self.cleaned_data.get('subjects') or []
        if commit:
            user.save()
        return user


class StaffAccountChangeForm(UserChangeForm):
    class Meta:
        model = User
        fields = STAFF_FIELDS


class EmailOrUsernameAuthenticationForm(AuthenticationForm):
    username = forms.CharField(label='Email or username')

    def clean(self):
        login_name = self.cleaned_data.get('username')
        password = self.cleaned_data.get('password')
        if not (login_name and password):
            return self.cleaned_data

        if '@' in login_name:
            match = User.objects.filter(email__iexact=login_name).values_list('username', flat=True).first()
            login_name = match or login_name

        self.user_cache = authenticate(self.request, username=login_name, password=password)
        if self.user_cache is None:
            raise self.get_invalid_login_error()
        self.confirm_login_allowed(self.user_cache)
        return self.cleaned_data
