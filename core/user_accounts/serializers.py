from rest_framework import serializers

from .models import CustomUser


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})


class UserProfileSerializer(serializers.ModelSerializer):
    """Read-only profile of the acting user"""
    role_display = serializers.CharField(source='get_role_display', read_only=True)
    assigned_sites = serializers.SerializerMethodField()

    class Meta:
        model = CustomUser
        fields = ['id', 'email', 'name', 'phone_number', 'role', 'role_display', 'assigned_sites']
        read_only_fields = fields

    def get_assigned_sites(self, obj):
        return [
            {'id': site.id, 'code': site.code, 'name': site.name}
            for site in obj.assigned_sites.all()
        ]
