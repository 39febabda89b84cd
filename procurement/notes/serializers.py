from rest_framework import serializers

from .models import RequestNote


class RequestNoteSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source='user.name', read_only=True, default=None)

    class Meta:
        model = RequestNote
        fields = ['id', 'request_number', 'user', 'user_name', 'role', 'status', 'note_type', 'content', 'created_at']
        read_only_fields = fields


class RequestNoteCreateSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=2000)
