from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Escort',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('pending', 'pending'), ('verified', 'verified'), ('rejected', 'rejected')], default='pending', max_length=16)),
                ('escort_category', models.CharField(choices=[('police', 'police'), ('ambulance', 'ambulance'), ('private-individual', 'private-individual')], max_length=32)),
                ('escort_name', models.CharField(max_length=255)),
                ('escort_gender', models.CharField(choices=[('male', 'male'), ('female', 'female')], max_length=16)),
                ('escort_phone', models.CharField(max_length=20)),
                ('vehicle_plate', models.CharField(max_length=20)),
                ('patient_name', models.CharField(max_length=255)),
                ('photo_reference', models.CharField(blank=True, max_length=255, null=True)),
                ('submission_id', models.CharField(blank=True, max_length=64, null=True)),
                ('source_ip', models.GenericIPAddressField(blank=True, null=True)),
                ('api_submission', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'indexes': [
                    models.Index(fields=['status'], name='escort_status_idx'),
                    models.Index(fields=['escort_category'], name='escort_category_idx'),
                    models.Index(fields=['created_at'], name='escort_created_at_idx'),
                    models.Index(fields=['submission_id'], name='escort_submission_id_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('status__in', ['pending', 'verified', 'rejected'])), name='escort_status_valid'),
                    models.CheckConstraint(condition=models.Q(('escort_category__in', ['police', 'ambulance', 'private-individual'])), name='escort_category_valid'),
                    models.CheckConstraint(condition=models.Q(('escort_gender__in', ['male', 'female'])), name='escort_gender_valid'),
                ],
            },
        ),
    ]
