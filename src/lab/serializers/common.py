from rest_framework import serializers


class PublicUserTinySerializer(serializers.Serializer):
    """Public projection for nested user references."""
    id = serializers.IntegerField()
    email = serializers.EmailField(allow_null=True, required=False)
    name = serializers.CharField(source="display_name", read_only=True)


class ComputerTinySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    location = serializers.CharField()
