from django.core.management.base import BaseCommand

from homeservices.models import WorkerProfile


class Command(BaseCommand):
    help = 'Recalculate cached worker ratings from their reviews.'

    def handle(self, *args, **options):
        for worker in WorkerProfile.objects.select_related('user'):
            rating = worker.recalc_rating()
            self.stdout.write(self.style.SUCCESS(f'Updated {worker.user.email}: {rating:.2f}'))
