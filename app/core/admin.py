"""
Shared admin helpers.

ReadOnlyAdminMixin turns a ModelAdmin into a viewer: records that are
append-only or only changed through services can be inspected but not
added, edited or deleted from the admin.
"""


class ReadOnlyAdminMixin:
    """Disable add, change and delete in the admin."""

    def has_add_permission(self, request) -> bool:
        return False

    def has_change_permission(self, request, obj=None) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False
