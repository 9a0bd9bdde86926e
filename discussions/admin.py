from django.contrib import admin

from .models import DiscussionItem

@admin.register(DiscussionItem)
class DiscussionItemAdmin(admin.ModelAdmin):
    list_display = ('title', 'meeting', 'status', 'order_index', 'created_by', 'updated_at')
    list_filter = ('status',)
    search_fields = ('title', 'description', 'meeting__title')
    autocomplete_fields = ['meeting']
    ordering = ('meeting', 'order_index')
