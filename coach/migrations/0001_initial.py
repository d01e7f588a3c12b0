import coach.models
import django.core.validators
import django.db.models.deletion
import django.db.models.functions.text
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='UserProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('email', models.EmailField(help_text='Login email (identity key)', max_length=254, unique=True)),
                ('name', models.CharField(blank=True, default='', max_length=120)),
                ('target_language', models.CharField(choices=[('French', 'French'), ('Spanish', 'Spanish')], default='French', max_length=16)),
                ('target_accent', models.CharField(default='fr-paris', help_text='Accent id from the catalog', max_length=32)),
                ('skill_level', models.CharField(choices=[('Novice', 'Novice'), ('Beginner', 'Beginner'), ('Intermediate', 'Intermediate'), ('Advanced', 'Advanced'), ('Expert', 'Expert')], default='Beginner', max_length=16)),
                ('preferred_flavor', models.CharField(choices=[('Casual', 'Casual'), ('Academic', 'Academic'), ('Conversational', 'Conversational'), ('Professional', 'Professional'), ('Creative', 'Creative')], default='Conversational', max_length=16)),
                ('daily_goal', models.PositiveIntegerField(default=15, help_text='Daily practice goal in minutes')),
                ('preferred_voice', models.CharField(default='Kore', max_length=16)),
                ('assistant_language', models.CharField(choices=[('Target', 'Target language'), ('English', 'English')], default='Target', max_length=8)),
                ('assistant_english_accent', models.CharField(default='American', max_length=16)),
                ('is_live_assistant_enabled', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.OneToOneField(help_text='Associated user account', on_delete=django.db.models.deletion.CASCADE, related_name='accent_profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'User Profile',
                'verbose_name_plural': 'User Profiles',
            },
        ),
        migrations.CreateModel(
            name='PracticeSession',
            fields=[
                ('id', models.CharField(default=coach.models.generate_id, max_length=36, primary_key=True, serialize=False)),
                ('date', models.DateTimeField(default=django.utils.timezone.now)),
                ('language', models.CharField(choices=[('French', 'French'), ('Spanish', 'Spanish')], max_length=16)),
                ('accent', models.CharField(max_length=32)),
                ('skill_level', models.CharField(choices=[('Novice', 'Novice'), ('Beginner', 'Beginner'), ('Intermediate', 'Intermediate'), ('Advanced', 'Advanced'), ('Expert', 'Expert')], max_length=16)),
                ('flavor', models.CharField(choices=[('Casual', 'Casual'), ('Academic', 'Academic'), ('Conversational', 'Conversational'), ('Professional', 'Professional'), ('Creative', 'Creative')], max_length=16)),
                ('mode', models.CharField(choices=[('Read', 'Read'), ('Respond', 'Respond'), ('TongueTwister', 'Tongue Twister'), ('Slang', 'Slang')], max_length=16)),
                ('prompt', models.TextField(help_text='Text shown to the user')),
                ('score', models.FloatField(help_text='Overall score from 0 to 100', validators=[django.core.validators.MinValueValidator(0.0), django.core.validators.MaxValueValidator(100.0)])),
                ('assistant_response', models.TextField(blank=True, null=True)),
                ('feedback', models.JSONField(default=dict, help_text='Strengths, improvements and detailed analysis')),
                ('user', models.ForeignKey(help_text='Owner of this session', on_delete=django.db.models.deletion.CASCADE, related_name='practice_sessions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Practice Session',
                'verbose_name_plural': 'Practice Sessions',
                'ordering': ['-date'],
                'indexes': [models.Index(fields=['user', 'date'], name='coach_pract_user_id_3f1c2a_idx')],
            },
        ),
        migrations.CreateModel(
            name='SavedPassage',
            fields=[
                ('id', models.CharField(default=coach.models.generate_id, max_length=36, primary_key=True, serialize=False)),
                ('text', models.TextField()),
                ('date', models.DateTimeField(default=django.utils.timezone.now)),
                ('language', models.CharField(choices=[('French', 'French'), ('Spanish', 'Spanish')], max_length=16)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='saved_passages', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Saved Passage',
                'verbose_name_plural': 'Saved Passages',
                'ordering': ['-date'],
            },
        ),
        migrations.CreateModel(
            name='SlangTerm',
            fields=[
                ('id', models.CharField(default=coach.models.generate_id, max_length=36, primary_key=True, serialize=False)),
                ('term', models.CharField(max_length=200)),
                ('meaning', models.TextField()),
                ('example', models.TextField(blank=True, default='')),
                ('region', models.CharField(default='Universal', max_length=64)),
                ('language', models.CharField(choices=[('French', 'French'), ('Spanish', 'Spanish')], max_length=16)),
                ('date_learned', models.DateTimeField(default=django.utils.timezone.now)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='slang_terms', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Slang Term',
                'verbose_name_plural': 'Slang Terms',
                'ordering': ['-date_learned'],
                'constraints': [models.UniqueConstraint(django.db.models.functions.text.Lower('term'), 'language', 'user', name='unique_slang_term_per_language')],
            },
        ),
        migrations.CreateModel(
            name='Flashcard',
            fields=[
                ('id', models.CharField(default=coach.models.generate_id, max_length=36, primary_key=True, serialize=False)),
                ('word', models.CharField(max_length=200)),
                ('definition_en', models.TextField(help_text='Definition in English')),
                ('definition_target', models.TextField(blank=True, help_text='Definition translated into the card language, fetched on demand', null=True)),
                ('word_type', models.CharField(blank=True, default='', max_length=32)),
                ('practice_count', models.PositiveIntegerField(default=0)),
                ('consecutive_correct', models.PositiveIntegerField(default=0)),
                ('frequency', models.PositiveSmallIntegerField(default=3, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(5)])),
                ('language', models.CharField(choices=[('French', 'French'), ('Spanish', 'Spanish')], max_length=16)),
                ('date_added', models.DateTimeField(default=django.utils.timezone.now)),
                ('is_custom', models.BooleanField(default=False, help_text='Added by hand rather than extracted from a prompt')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='flashcards', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Flashcard',
                'verbose_name_plural': 'Flashcards',
                'ordering': ['-date_added'],
                'indexes': [models.Index(fields=['user', 'language'], name='coach_flash_user_id_8b2d4e_idx')],
                'constraints': [models.UniqueConstraint(django.db.models.functions.text.Lower('word'), 'language', 'user', name='unique_flashcard_word_per_language')],
            },
        ),
        migrations.CreateModel(
            name='FocusSession',
            fields=[
                ('id', models.CharField(default=coach.models.generate_id, max_length=36, primary_key=True, serialize=False)),
                ('date', models.DateTimeField(default=django.utils.timezone.now)),
                ('minutes', models.PositiveIntegerField()),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='focus_sessions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Focus Session',
                'verbose_name_plural': 'Focus Sessions',
                'ordering': ['-date'],
            },
        ),
    ]
