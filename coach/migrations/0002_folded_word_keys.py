from django.db import migrations, models


def fill_keys(apps, schema_editor):
    from coach.models import fold_key

    Flashcard = apps.get_model('coach', 'Flashcard')
    SlangTerm = apps.get_model('coach', 'SlangTerm')
    for card in Flashcard.objects.all():
        card.word_key = fold_key(card.word)
        card.save(update_fields=['word_key'])
    for slang in SlangTerm.objects.all():
        slang.term_key = fold_key(slang.term)
        slang.save(update_fields=['term_key'])


class Migration(migrations.Migration):

    dependencies = [
        ('coach', '0001_initial'),
    ]

    operations = [
        migrations.RemoveConstraint(
            model_name='flashcard',
            name='unique_flashcard_word_per_language',
        ),
        migrations.RemoveConstraint(
            model_name='slangterm',
            name='unique_slang_term_per_language',
        ),
        migrations.AddField(
            model_name='flashcard',
            name='word_key',
            field=models.CharField(default='', editable=False, help_text='Case-folded word, set on save', max_length=200),
            preserve_default=False,
        ),
        migrations.AddField(
            model_name='slangterm',
            name='term_key',
            field=models.CharField(default='', editable=False, help_text='Case-folded term, set on save', max_length=200),
            preserve_default=False,
        ),
        migrations.RunPython(fill_keys, migrations.RunPython.noop),
        migrations.AddConstraint(
            model_name='flashcard',
            constraint=models.UniqueConstraint(fields=('user', 'language', 'word_key'), name='unique_flashcard_word_per_language'),
        ),
        migrations.AddConstraint(
            model_name='slangterm',
            constraint=models.UniqueConstraint(fields=('user', 'language', 'term_key'), name='unique_slang_term_per_language'),
        ),
    ]
