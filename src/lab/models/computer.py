from django.db import models


class Computer(models.Model):
    class OperatingSystem(models.TextChoices):
        WINDOWS = "Windows", "Windows"
        LINUX = "Linux", "Linux"
        MACOS = "macOS", "macOS"
        DUAL_BOOT = "Dual Boot", "Dual Boot"
        WSL = "WSL", "WSL"
        VM_ON_LINUX = "VM on Linux", "VM on Linux"
        OTHER = "Other", "Other"

    name = models.CharField(max_length=100, unique=True)
    location = models.CharField(max_length=100)
    specifications = models.TextField(blank=True, default="")
    operating_system = models.CharField(
        max_length=20,
        choices=OperatingSystem.choices,
        default=OperatingSystem.WINDOWS,
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.location})"
