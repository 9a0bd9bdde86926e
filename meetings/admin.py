from django.contrib import admin

# Register your models here.

from .models import Meeting, MeetingParticipant

class MeetingParticipantInline(admin.TabularInline):
    model = MeetingParticipant
    readonly_fields = ('created_at',)
    extra = 0

@admin.register(Meeting)
class MeetingAdmin(admin.ModelAdmin):
    list_display = ('title', 'scheduled_date', 'scheduled_time', 'status', 'is_recurring', 'created_by')
    search_fields = ['title', 'description', 'location']
    list_filter = ('status', 'is_recurring', 'scheduled_date')
    date_hierarchy = 'scheduled_date'
    readonly_fields = ('created_at', 'updated_at', 'ended_at')
    fieldsets = ((None, {'fields': ('title', 'description', 'created_by')}),
                 ('Schedule', {'fields': ('scheduled_date', 'scheduled_time', 'duration_minutes', 'location', 'is_recurring', 'frequency')}),
                 ('Lifecycle', {'fields': ('status', 'ended_at')}),
                 ('Timestamps', {'fields': ('created_at', 'updated_at'), 'classes': ('collapse',)}),)
    inlines = [MeetingParticipantInline]

@admin.register(MeetingParticipant)
class MeetingParticipantAdmin(admin.ModelAdmin):
    list_display = ('email', 'meeting', 'role', 'status', 'created_at')
    list_filter = ('role', 'status')
    search_fields = ('email', 'meeting__title')
    autocomplete_fields = ['meeting']
