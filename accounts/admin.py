from django.contrib import admin

# Register your models here.

from .models import Profile

@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ('email', 'full_name', 'created_at')
    search_fields = ['email', 'full_name']
    readonly_fields = ('created_at', 'updated_at')
