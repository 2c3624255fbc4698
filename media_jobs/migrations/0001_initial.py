import uuid

from django.db import migrations, models

import media_jobs.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="MediaJob",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("owner_id", models.CharField(db_index=True, max_length=128)),
                ("kind", models.CharField(choices=[("file", "File"), ("remoteVideo", "Remote Video")], max_length=16)),
                ("source_reference", models.CharField(max_length=2048)),
                ("display_name", models.CharField(max_length=512)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                        ],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("extracted_text", models.TextField(blank=True, null=True)),
                (
                    "extraction_method",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("document-parse", "Document Parse"),
                            ("audio-transcription", "Audio Transcription"),
                            ("video-transcription", "Video Transcription"),
                            ("unsupported", "Unsupported"),
                        ],
                        max_length=32,
                        null=True,
                    ),
                ),
                ("content_type", models.CharField(blank=True, default="", max_length=255)),
                ("derived_content", models.JSONField(blank=True, default=media_jobs.models.empty_derived_content)),
                ("error", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
