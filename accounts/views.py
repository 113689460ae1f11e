import logging

from django.contrib import messages
from django.contrib.auth import login, logout
from django.contrib.auth.decorators import user_passes_test
from django.shortcuts import redirect, render
from django.utils.decorators import method_decorator
from django.views import View

from core.permissions import is_admin
from .forms import EmailOrUsernameAuthenticationForm, StaffAccountForm

logger = logging.getLogger(__name__)


class FormPageView(View):
    """GET shows an empty form; POST hands a bound one to ``form_valid``."""

    template_name = None
    form_class = None
    error_message = 'Please check the form and try again.'

    def build_form(self, data=None):
        return self.form_class(data)

    def get(self, request):
        return render(request, self.template_name, {'form': self.build_form()})

    def post(self, request):
        form = self.build_form(request.POST)
        if form.is_valid():
            return self.form_valid(form)
        messages.error(request, self.error_message)
        return render(request, self.template_name, {'form': form})


@method_decorator(user_passes_test(is_admin, login_url='signin'), name='dispatch')
class SignUpView(FormPageView):
    """Staff accounts are opened by administrators only."""

    template_name = 'accounts/signup.html'
    form_class = StaffAccountForm

    def form_valid(self, form):
        account = form.save()
        logger.info(f"{self.request.user.username} opened {account.role} account {account.username}")
        messages.success(self.request, f"Account {account.username} is ready.")
        return redirect('dashboard')


class SignInView(FormPageView):
    template_name = 'accounts/signin.html'
    form_class = EmailOrUsernameAuthenticationForm
    error_message = 'That email/username and password did not match.'

    def dispatch(self, request, *args, **kwargs):
        if request.user.is_authenticated:
            return redirect('dashboard')
        return super().dispatch(request, *args, **kwargs)

    def build_form(self, data=None):
        return self.form_class(self.request, data=data)

    def form_valid(self, form):
        user = form.get_user()
        login(self.request, user)
        title = 'Administrator ' if is_admin(user) else ''
        messages.success(self.request, f"Welcome back, {title}{user.display_name}.")
        return redirect('dashboard')


class SignOutView(View):
    def get(self, request):
        if request.user.is_authenticated:
            logger.info(f"{request.user.username} signed out")
            logout(request)
            messages.info(request, 'You are signed out.')
        return redirect('signin')

    post = get
