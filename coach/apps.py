"""coach.apps module.

Django application configuration for the *coach* app used by the
**accentmaster** project.
"""

from django.apps import AppConfig


class CoachConfig(AppConfig):
    """Django ``AppConfig`` for the **coach** application."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'coach'
    verbose_name = 'Accent Coach'
