from django.contrib.auth.models import AbstractUser
from django.db import models


class CustomUser(AbstractUser):
    ROLE_ADMIN = 'admin'
    ROLE_TEACHER = 'teacher'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_TEACHER, 'Teacher'),
    ]

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_TEACHER)
    full_name = models.CharField(max_length=150, blank=True)
    school_name = models.CharField(max_length=200, blank=True)
    phone_number = models.CharField(max_length=20, blank=True)

    class Meta:
        verbose_name = 'User'
        verbose_name_plural = 'Users'

    def __str__(self):
        return self.username

    @property
    def display_name(self):
        return self.full_name or self.get_full_name() or self.username

    @property
    def is_school_admin(self):
        return self.role == self.ROLE_ADMIN or self.is_staff or self.is_superuser
