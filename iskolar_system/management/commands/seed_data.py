from django.core.management.base import BaseCommand
from django.utils import timezone
from decimal import Decimal
import random
from datetime import date, time, timedelta
from django.db import transaction

from iskolar_system.models import (
    User, SchoolYear, Semester, Application, Release, EligibilityConfiguration,
    Document, CriterionOverride, AuditLog, AppSetting, SettingsAudit
)


BARANGAYS = [
    'Bagumbayan', 'Bambang', 'Calzada', 'Central Bicutan', 'Fort Bonifacio',
    'Hagonoy', 'Ibayo-Tipas', 'Ligid-Tipas', 'Lower Bicutan', 'Napindan',
    'Palingon', 'San Miguel', 'Santa Ana', 'Tuktukan', 'Ususan', 'Wawa',
]

SCHOOLS = [
    'Taguig City University', 'Technological University of the Philippines - Taguig',
    'University of the Philippines Diliman', 'Polytechnic University of the Philippines',
    'Rizal Technological University', 'University of Makati', 'De La Salle University',
]

FIRST_NAMES = [
    'Juan', 'Maria', 'Jose', 'Ana', 'Mark', 'Kristine', 'Paolo', 'Angelica',
    'Miguel', 'Camille', 'Rafael', 'Bea', 'Carlo', 'Andrea', 'Jerome', 'Nicole',
]

LAST_NAMES = [
    'Dela Cruz', 'Santos', 'Reyes', 'Garcia', 'Mendoza', 'Bautista', 'Villanueva',
    'Ramos', 'Aquino', 'Castillo', 'Navarro', 'Torres', 'Flores', 'Gonzales',
]

DOCUMENTS = [
    ('Valid ID', 'identity'),
    ('Voter Certification', 'identity'),
    ('Certificate of Registration', 'academic'),
    ('Transcript of Records', 'academic'),
    ('Certificate of Indigency', 'other'),
]


class Command(BaseCommand):
    help = 'Seed the database with sample scholarship data for Taguig City'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before seeding',
        )
        parser.add_argument(
            '--applications',
            type=int,
            default=40,
            help='Number of applications to create for the open semester',
        )

    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            self.clear_data()

        self.stdout.write('Starting data seeding...')

        with transaction.atomic():
            admin = self.create_users()
            semesters = self.create_school_years_and_semesters()
            self.create_eligibility_configuration(semesters, admin)
            self.create_applications(semesters['open'], options['applications'], admin)
            self.create_releases(semesters)

        self.stdout.write(
            self.style.SUCCESS('Successfully seeded the database!')
        )

    def clear_data(self):
        """Clear all existing data"""
        models_to_clear = [
            SettingsAudit, AppSetting, AuditLog, CriterionOverride, Document,
            Release, Application, EligibilityConfiguration, Semester, SchoolYear,
        ]

        for model in models_to_clear:
            model.objects.all().delete()
        User.objects.filter(is_superuser=False).delete()

    def create_users(self):
        """Create system users"""
        self.stdout.write('Creating users...')

        if not User.objects.filter(username='superadmin').exists():
            User.objects.create_user(
                username='superadmin',
                email='superadmin@iskolar.taguig.gov.ph',
                password='superadmin123',
                first_name='System',
                last_name='Administrator',
                user_type='super_admin',
                is_staff=True,
                is_superuser=True
            )

        admin, created = User.objects.get_or_create(
            username='admin',
            defaults={
                'email': 'admin@iskolar.taguig.gov.ph',
                'first_name': 'Liza',
                'last_name': 'Manalo',
                'user_type': 'admin',
                'is_staff': True,
            }
        )
        if created:
            admin.set_password('admin123')
            admin.save()
        return admin

    def create_school_years_and_semesters(self):
        """Create the previous and current school years"""
        self.stdout.write('Creating school years and semesters...')

        previous, _ = SchoolYear.objects.get_or_create(academic_year='2024-2025', defaults={'is_active': False})
        current, _ = SchoolYear.objects.get_or_create(academic_year='2025-2026', defaults={'is_active': True})

        closed, _ = Semester.objects.get_or_create(
            school_year=previous, name='Second Semester', defaults={'applications_open': False}
        )
        open_semester, _ = Semester.objects.get_or_create(
            school_year=current, name='First Semester', defaults={'applications_open': True}
        )
        return {'closed': closed, 'open': open_semester}

    def create_eligibility_configuration(self, semesters, admin):
        for semester in semesters.values():
            EligibilityConfiguration.objects.get_or_create(
                semester=semester,
                defaults={'updated_by': admin}
            )

    def create_applications(self, semester, count, admin):
        """Create applicants with a mix of statuses and eligibility data"""
        self.stdout.write(f'Creating {count} applications...')

        now = timezone.now()
        for i in range(count):
            first_name = random.choice(FIRST_NAMES)
            last_name = random.choice(LAST_NAMES)
            username = f'scholar{i + 1:03d}'

            user, created = User.objects.get_or_create(
                username=username,
                defaults={
                    'email': f'{username}@example.com',
                    'first_name': first_name,
                    'last_name': last_name,
                    'user_type': 'applicant',
                    'phone_number': f'09{random.randint(100000000, 999999999)}',
                }
            )
            if created:
                user.set_password('password123')
                user.save()

            status = random.choices(['pending', 'approved', 'rejected'], weights=[60, 30, 10])[0]
            submitted_at = now - timedelta(days=random.randint(1, 60), hours=random.randint(0, 23))
            # some applicants have not provided everything yet
            complete = random.random() > 0.2

            application = Application.objects.create(
                user=user,
                semester=semester,
                status=status,
                first_name=first_name,
                last_name=last_name,
                email_address=user.email,
                barangay=random.choice(BARANGAYS),
                school=random.choice(SCHOOLS),
                years_of_residency=random.randint(1, 20) if complete else None,
                is_registered_voter=random.random() > 0.15,
                monthly_family_income=Decimal(random.randint(8000, 40000)) if complete else None,
                date_of_birth=date(random.randint(1999, 2008), random.randint(1, 12), random.randint(1, 28)),
                gpa=Decimal(str(round(random.uniform(1.75, 4.0), 2))),
                is_enrolled=True,
                enrolled_units=random.choice([9, 12, 15, 18, 21]) if complete else None,
                has_failing_grades=random.random() < 0.1,
                submitted_at=submitted_at,
                reviewed_at=submitted_at + timedelta(days=3) if status != 'pending' else None,
                reviewed_by=admin if status != 'pending' else None,
                rejection_reason='Incomplete requirements' if status == 'rejected' else '',
            )

            for name, category in DOCUMENTS:
                Document.objects.create(
                    application=application,
                    name=name,
                    category=category,
                    file_type=random.choice(['pdf', 'jpg', 'png']),
                    status='verified' if status == 'approved' else 'pending',
                )

    def create_releases(self, semesters):
        """Create release schedules for both semesters"""
        self.stdout.write('Creating releases...')

        release_types = [
            ('Allowance', Decimal('5000.00')),
            ('Tuition Subsidy', Decimal('10000.00')),
            ('Book Allowance', Decimal('2500.00')),
        ]
        today = timezone.localdate()

        for key, semester in semesters.items():
            for index, barangay in enumerate(random.sample(BARANGAYS, 6)):
                release_type, amount = random.choice(release_types)
                offset = -30 + index * 10 if key == 'open' else -150 + index * 7
                Release.objects.create(
                    semester=semester,
                    release_type=release_type,
                    release_date=today + timedelta(days=offset),
                    release_time=time(random.choice([8, 9, 10, 13, 14]), 0),
                    barangay=barangay,
                    location=f'{barangay} Barangay Hall',
                    amount_per_student=amount,
                    number_of_recipients=random.randint(10, 60),
                    is_archived=key == 'closed',
                )
