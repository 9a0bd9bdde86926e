from django.contrib import admin

# Register your models here.

from .models import Todo

@admin.register(Todo)
class TodoAdmin(admin.ModelAdmin):
    list_display = ('title', 'meeting', 'assigned_email', 'status', 'due_date', 'order_index')
    list_filter = ('status', 'due_date')
    search_fields = ('title', 'description', 'assigned_email', 'meeting__title')
    autocomplete_fields = ['meeting']
    readonly_fields = ('created_at', 'updated_at')
