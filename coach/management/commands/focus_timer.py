"""
Management command that runs a focus timer in the console.

The countdown is printed once per second; when it reaches zero a
FocusSession is recorded for the given user.
"""

import asyncio

from django.contrib.auth.models import User
from django.core.management.base import BaseCommand, CommandError

from coach.focus import FocusTimer
from coach.models import FocusSession


class Command(BaseCommand):
    help = "Run a focus timer and record the session when it completes"

    def add_arguments(self, parser):
        parser.add_argument('email', help='Login email of the user to record the session for')
        parser.add_argument(
            '--minutes',
            type=int,
            default=15,
            help='Length of the focus session in minutes (default: 15)',
        )

    def handle(self, *args, **options):
        try:
            user = User.objects.get(username=options['email'])
        except User.DoesNotExist:
            raise CommandError(f"No user with email {options['email']}")

        async def record(minutes: int) -> None:
            await FocusSession.objects.acreate(user=user, minutes=minutes)

        def show(timer: FocusTimer) -> None:
            self.stdout.write(f"\r{timer.display()}", ending='')
            self.stdout.flush()

        try:
            timer = FocusTimer(options['minutes'], on_complete=record)
        except ValueError as e:
            raise CommandError(str(e))

        try:
            completed = asyncio.run(timer.run(on_tick=show))
        except KeyboardInterrupt:
            completed = False
        self.stdout.write('')

        if completed:
            self.stdout.write(
                self.style.SUCCESS(f"Focus session of {timer.minutes} minutes recorded")
            )
        else:
            self.stdout.write(self.style.WARNING("Focus session stopped early; nothing recorded"))
