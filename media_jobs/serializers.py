from django.conf import settings
from rest_framework import serializers

from .models import MediaJob
from .study_tools import DIFFICULTIES


class MediaJobSerializer(serializers.ModelSerializer):
    ownerId = serializers.CharField(source="owner_id")
    sourceReference = serializers.CharField(source="source_reference")
    displayName = serializers.CharField(source="display_name")
    extractedText = serializers.CharField(source="extracted_text", allow_null=True)
    extractionMethod = serializers.CharField(source="extraction_method", allow_null=True)
    derivedContent = serializers.JSONField(source="derived_content")
    createdAt = serializers.DateTimeField(source="created_at")
    updatedAt = serializers.DateTimeField(source="updated_at")

    class Meta:
        model = MediaJob
        fields = [
            "id",
            "ownerId",
            "kind",
            "sourceReference",
            "displayName",
            "status",
            "extractedText",
            "extractionMethod",
            "derivedContent",
            "createdAt",
            "updatedAt",
        ]


class MediaJobSummarySerializer(serializers.ModelSerializer):
    displayName = serializers.CharField(source="display_name")
    derivedContent = serializers.JSONField(source="derived_content")
    createdAt = serializers.DateTimeField(source="created_at")

    class Meta:
        model = MediaJob
        fields = ["id", "kind", "displayName", "status", "derivedContent", "createdAt"]


class CreateJobRequestSerializer(serializers.Serializer):
    kind = serializers.ChoiceField(choices=MediaJob.Kind.choices)
    sourceReference = serializers.CharField(max_length=2048, trim_whitespace=True)
    displayName = serializers.CharField(max_length=512, required=False, allow_blank=True)


class JobStatusSerializer(serializers.Serializer):
    status = serializers.CharField()
    data = serializers.JSONField(allow_null=True)


class NotesUpdateSerializer(serializers.Serializer):
    notes = serializers.CharField(allow_blank=True, trim_whitespace=False)


class QuizRequestSerializer(serializers.Serializer):
    category = serializers.CharField(max_length=256)
    difficulty = serializers.ChoiceField(choices=sorted(DIFFICULTIES))
    count = serializers.IntegerField(min_value=1, max_value=10, default=3)


class PresignRequestSerializer(serializers.Serializer):
    filename = serializers.CharField()
    content_type = serializers.CharField()

    def validate_content_type(self, value):
        value = value.split(";", 1)[0].strip().lower()
        allowed = settings.MEDIA_UPLOAD_CONTENT_TYPES
        if value not in allowed:
            raise serializers.ValidationError(
                f"Unsupported content type: {value}. Allowed: {sorted(allowed)}"
            )
        return value


class PresignResponseSerializer(serializers.Serializer):
    key = serializers.CharField()
    url = serializers.URLField()
    headers = serializers.DictField(child=serializers.CharField(), required=False)
