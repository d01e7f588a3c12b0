"""
coach.urls module.

URL configuration for the accent coach JSON API (mounted under ``/api/``).
"""

from django.urls import path

from . import auth_views, views

urlpatterns = [
    # Authentication
    path('login', auth_views.login_view, name='login'),
    path('logout', auth_views.logout_view, name='logout'),
    path('me', auth_views.me_view, name='me'),
    # Stored history
    path('profile', views.profile_view, name='profile'),
    path('sessions', views.sessions_view, name='sessions'),
    path('passages', views.passages_view, name='passages'),
    path('slang', views.slang_view, name='slang'),
    path('flashcards', views.flashcards_view, name='flashcards'),
    path('flashcards/add', views.add_flashcard, name='add_flashcard'),
    path(
        'flashcards/<str:card_id>/translation',
        views.flashcard_translation,
        name='flashcard_translation',
    ),
    path('focus-sessions', views.focus_sessions_view, name='focus_sessions'),
    # Practice flow
    path('practice', views.practice_view, name='practice'),
    path('practice/start', views.start_practice, name='start_practice'),
    path('practice/recording/begin', views.begin_recording, name='begin_recording'),
    path('practice/recording/abort', views.abort_recording, name='abort_recording'),
    path('practice/recording', views.submit_recording, name='submit_recording'),
    path('practice/speech', views.speak_prompt, name='speak_prompt'),
    path('practice/translation', views.toggle_translation, name='toggle_translation'),
    path('practice/word', views.select_word, name='select_word'),
    path('practice/end', views.end_practice, name='end_practice'),
    # Settings
    path('settings', views.settings_view, name='settings'),
    path('settings/commit', views.commit_settings, name='commit_settings'),
    # Study runs
    path('study', views.study_view, name='study'),
    path('study/start', views.start_study, name='start_study'),
    path('study/answer', views.answer_study, name='answer_study'),
    # Progress & catalog
    path('progress', views.progress_view, name='progress'),
    path('catalog', views.catalog_view, name='catalog'),
]
