from rest_framework import permissions
from rest_framework.exceptions import PermissionDenied

from .models import Account


def get_account(request):
    """Returns the Account of the authenticated caller, or refuses the request."""
    try:
        return request.user.account
    except (AttributeError, Account.DoesNotExist):
        raise PermissionDenied('No account is associated with this user')


class HasAccount(permissions.BasePermission):
    message = 'No account is associated with this user'

    def has_permission(self, request, view):
        return bool(
            request.user and request.user.is_authenticated
            and Account.objects.filter(user=request.user).exists()
        )


class RolePermission(HasAccount):
    roles = ()

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False
        return request.user.account.role in self.roles


class IsPharmacy(RolePermission):
    message = 'Only pharmacy accounts can do this'
    roles = (Account.ROLE_PHARMACY,)


class IsInstitute(RolePermission):
    message = 'Only institute accounts can do this'
    roles = (Account.ROLE_INSTITUTE,)


class IsAdminAccount(RolePermission):
    message = 'Only admin accounts can do this'
    roles = (Account.ROLE_ADMIN,)
