from django.contrib.auth.models import AbstractUser
from django.contrib.auth.models import UserManager as BaseUserManager
from django.db import models


class UserManager(BaseUserManager):
    def active_couriers(self, roles=None):
        return self.filter(is_active=True, role__in=roles or [User.ROLE_DRIVER])


class User(AbstractUser):
    ROLE_ADMIN = "admin"
    ROLE_WAREHOUSE_MANAGER = "warehouse_manager"
    ROLE_WORKER = "worker"
    ROLE_DRIVER = "driver"

    ROLE_CHOICES = [
        (ROLE_ADMIN, "Admin"),
        (ROLE_WAREHOUSE_MANAGER, "Warehouse Manager"),
        (ROLE_WORKER, "Worker"),
        (ROLE_DRIVER, "Driver"),
    ]

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_WORKER)
    phone = models.CharField(max_length=20, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    class Meta:
        db_table = "users"
        verbose_name = "User"
        verbose_name_plural = "Users"

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"

    @property
    def is_admin(self):
        return self.role == self.ROLE_ADMIN

    @property
    def is_warehouse_manager(self):
        return self.role == self.ROLE_WAREHOUSE_MANAGER

    @property
    def is_worker(self):
        return self.role == self.ROLE_WORKER

    @property
    def is_driver(self):
        return self.role == self.ROLE_DRIVER

    @property
    def is_active_courier(self):
        return self.is_active and self.is_driver
