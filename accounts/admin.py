from django.contrib import admin
from django.contrib.auth import get_user_model
from django.contrib.auth.admin import UserAdmin

from .forms import StaffAccountChangeForm, StaffAccountForm

User = get_user_model()


@admin.register(User)
class StaffAccountAdmin(UserAdmin):
    add_form = StaffAccountForm
    form = StaffAccountChangeForm
    list_display = ('username', 'full_name', 'email', 'role', 'is_active', 'last_login')
    list_filter = ('role', 'is_active')
    search_fields = ('username', 'full_name', 'email')
    ordering = ('full_name',)

    fieldsets = UserAdmin.fieldsets[:1] + (
        ('Staff details', {'fields': ('full_name', 'email', 'role', 'school_name', 'phone_number')}),
    ) + UserAdmin.fieldsets[2:]

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('username', 'full_name', 'email', 'role', 'subjects', 'password1', 'password2'),
        }),
    )
