# -*- coding: utf-8 -*-
"""
Translation dictionaries for German and English.

This module contains all user-facing strings of the Chronose engine.
"""

TRANSLATIONS = {
    "en": {
        # Application
        "app.name": "Chronose",

        # Timer
        "timer.stale_session_closed": (
            "Your session from {date} was still running after {hours} hours. "
            "It was closed automatically at the {hours} hour mark."
        ),
        "timer.running": "Checked in since {start} ({elapsed})",
        "timer.idle": "Not checked in",
        "timer.last_session": "Last session: {elapsed}",
        "timer.already_running": "A session is already running on {date}.",
        "timer.not_running": "No running session on {date}.",

        # Remote data
        "sync.not_available": "Data not available yet",
        "sync.fetch_failed": "Failed to fetch time entries",
        "sync.create_failed": "Failed to create time entry",
        "sync.update_failed": "Failed to update time entry",
        "sync.delete_failed": "Failed to delete time entry",
        "sync.entry_locked": "Approved entries cannot be changed.",
        "sync.entry_not_found": "Entry not found",

        # Work entry validation
        "validation.date_required": "Please select a date.",
        "validation.hours_required": "Please enter hours worked.",
        "validation.hours_number": "Hours must be a number.",
        "validation.hours_negative": "Hours cannot be negative.",
        "validation.hours_max": "Hours cannot exceed 24.",
        "validation.notes_length": "Notes must be 500 characters or fewer.",

        # Leave entry validation
        "validation.leave_type_required": "Please choose a leave type.",
        "validation.leave_duration_required": "Please choose full or partial day.",
        "validation.leave_reason_required": "Please enter a reason.",
        "validation.leave_reason_length": "Reason must be 300 characters or fewer.",
        "validation.leave_hours_required": "Please enter leave hours.",
        "validation.leave_hours_number": "Leave hours must be a number.",
        "validation.leave_hours_range": "Leave hours must be between 0 and 8.",

        # Console
        "console.week": "Week of {date}",
        "console.month": "{month}",
        "console.total": "Total: {elapsed}",
        "console.no_entries": "No entries.",
        "console.unknown_command": "Unknown command: {command}",
    },
    "de": {
        # Application
        "app.name": "Chronose",

        # Timer
        "timer.stale_session_closed": (
            "Ihre Sitzung vom {date} lief nach {hours} Stunden noch. "
            "Sie wurde automatisch bei {hours} Stunden beendet."
        ),
        "timer.running": "Eingestempelt seit {start} ({elapsed})",
        "timer.idle": "Nicht eingestempelt",
        "timer.last_session": "Letzte Sitzung: {elapsed}",
        "timer.already_running": "Am {date} läuft bereits eine Sitzung.",
        "timer.not_running": "Keine laufende Sitzung am {date}.",

        # Remote data
        "sync.not_available": "Daten noch nicht verfügbar",
        "sync.fetch_failed": "Zeiteinträge konnten nicht geladen werden",
        "sync.create_failed": "Zeiteintrag konnte nicht angelegt werden",
        "sync.update_failed": "Zeiteintrag konnte nicht aktualisiert werden",
        "sync.delete_failed": "Zeiteintrag konnte nicht gelöscht werden",
        "sync.entry_locked": "Genehmigte Einträge können nicht geändert werden.",
        "sync.entry_not_found": "Eintrag nicht gefunden",

        # Work entry validation
        "validation.date_required": "Bitte ein Datum wählen.",
        "validation.hours_required": "Bitte die gearbeiteten Stunden eingeben.",
        "validation.hours_number": "Stunden müssen eine Zahl sein.",
        "validation.hours_negative": "Stunden dürfen nicht negativ sein.",
        "validation.hours_max": "Stunden dürfen 24 nicht überschreiten.",
        "validation.notes_length": "Notizen dürfen höchstens 500 Zeichen lang sein.",

        # Leave entry validation
        "validation.leave_type_required": "Bitte eine Abwesenheitsart wählen.",
        "validation.leave_duration_required": "Bitte ganzen oder halben Tag wählen.",
        "validation.leave_reason_required": "Bitte einen Grund angeben.",
        "validation.leave_reason_length": "Der Grund darf höchstens 300 Zeichen lang sein.",
        "validation.leave_hours_required": "Bitte die Abwesenheitsstunden eingeben.",
        "validation.leave_hours_number": "Abwesenheitsstunden müssen eine Zahl sein.",
        "validation.leave_hours_range": "Abwesenheitsstunden müssen zwischen 0 und 8 liegen.",

        # Console
        "console.week": "Woche vom {date}",
        "console.month": "{month}",
        "console.total": "Gesamt: {elapsed}",
        "console.no_entries": "Keine Einträge.",
        "console.unknown_command": "Unbekannter Befehl: {command}",
    },
}
