# escorts/management/commands/populate_escorts.py
from django.core.management.base import BaseCommand

from escorts.models import Escort
from escorts.store import EscortStore

# status, category, escort name, gender, phone, plate, patient, api submission, submission id, source ip
SAMPLE_ESCORTS = [
    ("pending", "police", "Budi Santoso", "male", "081234567890", "B1234ABC", "Siti Aminah", True, "ESC_1640995200_B1234ABC", "192.168.1.100"),
    ("verified", "ambulance", "Dr. Sarah Wijaya", "female", "081987654321", "B5678DEF", "Ahmad Rahman", False, "ESC_1640995260_B5678DEF", "192.168.1.101"),
    ("pending", "private-individual", "Andi Wijaya", "male", "082345678901", "B9012GHI", "Maria Sari", True, "ESC_1640995320_B9012GHI", "192.168.1.102"),
    ("rejected", "police", "Joko Susilo", "male", "083456789012", "B3456JKL", "Dewi Lestari", False, "ESC_1640995380_B3456JKL", "192.168.1.103"),
    ("verified", "ambulance", "Suster Rina", "female", "084567890123", "B7890MNO", "Bambang Sutrisno", True, "ESC_1640995440_B7890MNO", "192.168.1.104"),
    ("pending", "private-individual", "Ibu Sari", "female", "085678901234", "B1357PQR", "Anak Sari (5 tahun)", False, "ESC_1640995500_B1357PQR", "192.168.1.105"),
    ("verified", "police", "Pak Hendro", "male", "086789012345", "B2468STU", "Pak Hendro (kecelakaan)", True, "ESC_1640995560_B2468STU", "192.168.1.106"),
    ("pending", "ambulance", "Dr. Indah", "female", "087890123456", "B3691VWX", "Ibu Hamil Emergency", False, "ESC_1640995620_B3691VWX", "192.168.1.107"),
]


class Command(BaseCommand):
    help = "Insert sample escort registrations (idempotent by submission id)."

    def handle(self, *args, **opts):
        store = EscortStore()
        created = 0
        for status, category, name, gender, phone, plate, patient, api, submission_id, ip in SAMPLE_ESCORTS:
            if Escort.objects.filter(submission_id=submission_id).exists():
                self.stdout.write(f"skip: {submission_id}")
                continue
            store.insert(
                status=status,
                escort_category=category,
                escort_name=name,
                escort_gender=gender,
                escort_phone=phone,
                vehicle_plate=plate,
                patient_name=patient,
                api_submission=api,
                submission_id=submission_id,
                source_ip=ip,
            )
            created += 1
            self.stdout.write(self.style.SUCCESS(f"ok: {submission_id} ({name})"))
        self.stdout.write(self.style.SUCCESS(f"{created} sample escorts inserted."))
