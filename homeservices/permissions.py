"""Role based permissions."""
from __future__ import annotations

from django.conf import settings
from rest_framework import permissions

from .models import User


class HasRole(permissions.BasePermission):
    """Allow authenticated users whose role is in ``allowed_roles``."""

    allowed_roles: tuple[str, ...] = ()
    message = 'Access denied'

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.role in self.allowed_roles


class IsCustomer(HasRole):
    allowed_roles = (User.ROLE_CUSTOMER,)
    message = 'Customer access required'


class IsWorker(HasRole):
    allowed_roles = (User.ROLE_WORKER,)
    message = 'Worker access required'


class IsAdminRole(HasRole):
    allowed_roles = (User.ROLE_ADMIN,)
    message = 'Admin access required'


class CanCreateService(permissions.BasePermission):
    """Service creation is public unless ``CATALOG_OPEN_SERVICE_CREATION`` is off."""

    message = 'Admin access required'

    def has_permission(self, request, view) -> bool:
        if request.method in permissions.SAFE_METHODS:
            return True
        if getattr(settings, 'CATALOG_OPEN_SERVICE_CREATION', True):
            return True
        user = request.user
        return bool(user and user.is_authenticated and user.role == User.ROLE_ADMIN)
