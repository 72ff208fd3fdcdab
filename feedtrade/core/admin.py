from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .kv_store import MESSAGE_TEMPLATE_PREFIX, SHIPMENT_TEMPLATE_PREFIX, SHIPMENT_RECENT_PREFIX, PREFS_PREFIX
from .models import User, Setting, AuditLog


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'full_name', 'role', 'phone', 'is_active', 'last_login']
    list_filter = ['role', 'is_active']
    search_fields = ['username', 'full_name', 'phone']
    ordering = ['username']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Trading', {'fields': ('full_name', 'phone', 'role')}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Trading', {'fields': ('full_name', 'phone', 'role')}),
    )


class SettingNamespaceFilter(admin.SimpleListFilter):
    title = 'namespace'
    parameter_name = 'namespace'

    def lookups(self, request, model_admin):
        return [
            (MESSAGE_TEMPLATE_PREFIX, 'Message templates'),
            (SHIPMENT_TEMPLATE_PREFIX, 'Shipment templates'),
            (SHIPMENT_RECENT_PREFIX, 'Recent shipments'),
            (PREFS_PREFIX, 'User preferences'),
        ]

    def queryset(self, request, queryset):
        if self.value():
            return queryset.filter(key__startswith=self.value())
        return queryset


@admin.register(Setting)
class SettingAdmin(admin.ModelAdmin):
    list_display = ['key', 'updated_at']
    list_filter = [SettingNamespaceFilter]
    search_fields = ['key']
    ordering = ['key']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'action', 'model_name', 'object_name', 'user']
    list_filter = ['action', 'model_name']
    search_fields = ['object_name', 'object_id', 'user__username']
    date_hierarchy = 'created_at'
    readonly_fields = [f.name for f in AuditLog._meta.fields]
