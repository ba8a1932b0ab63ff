from django.contrib.auth.models import AbstractUser
from django.db import models
from phonenumber_field.modelfields import PhoneNumberField

class User(AbstractUser):
    class Roles(models.TextChoices):
        PASSENGER = "PASSENGER", "Passenger"
        OPERATOR = "OPERATOR", "Fleet Operator"
        ADMIN = "ADMIN", "Admin"

    # PASSENGER: Can book and cancel rides
    # OPERATOR: Can register vehicles and see every booking
    # ADMIN: Superuser access
    role = models.CharField(max_length=20, choices=Roles.choices, default=Roles.PASSENGER)

    # Drivers call passengers at the kerb, so keep a validated number (+263...)
    phone_number = PhoneNumberField(blank=True, null=True, unique=True, region="ZW")

    @property
    def is_operator(self):
        return self.is_staff or self.role in (self.Roles.OPERATOR, self.Roles.ADMIN)

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"
