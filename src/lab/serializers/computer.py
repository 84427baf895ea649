from rest_framework import serializers

from src.lab.models import Computer


class ComputerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Computer
        fields = ("id", "name", "location", "specifications", "operating_system", "is_active")
        read_only_fields = fields
