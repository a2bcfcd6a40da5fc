from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import Company, User, SystemSetting


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('username', 'company', 'role', 'is_active', 'is_staff')
    list_filter = ('role', 'is_staff', 'is_superuser', 'company')
    fieldsets = (
        (None, {'fields': ('username', 'password', 'company')}),
        ('Personal Info', {'fields': ('first_name', 'last_name', 'mobile_number')}),
        ('Permissions', {'fields': ('role', 'is_active', 'is_staff',
         'is_superuser', 'groups', 'user_permissions')}),
        ('Important dates', {'fields': ('last_login', 'date_joined')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('username', 'company', 'mobile_number', 'password1', 'password2', 'role'),
        }),
    )
    search_fields = ('username',)
    ordering = ('username',)


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ('name', 'company_code', 'created_at')
    search_fields = ('name', 'company_code')


@admin.register(SystemSetting)
class SystemSettingAdmin(admin.ModelAdmin):
    list_display = ('key', 'is_enabled', 'updated_by', 'updated_at')
