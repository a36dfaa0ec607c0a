"""
Domínio → ORM do CRM.

⚑ IDs UUID gerados no domínio (a entidade nasce com id)
⚑ `version` em toda linha mutável (lock otimista nos repositórios)
⚑ CHECKs de valor/probabilidade espelhando os value objects
⚑ Sem tipos específicos de Postgres: roda em qualquer backend do Django
"""

from __future__ import annotations

import uuid

from django.db import models
from django.db.models import CheckConstraint, Index, Q


# ╭──────────────────────────────────────────────╮
# │ 1. Usuários / Grupos                        │
# ╰──────────────────────────────────────────────╯
class User(models.Model):
    class Role(models.TextChoices):
        ADMIN = "ADMIN", "Administrator"
        USER = "USER", "Użytkownik"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True, max_length=128)
    name = models.CharField(max_length=100)
    role = models.CharField(max_length=10, choices=Role.choices, default=Role.USER, db_index=True)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "users"

    # DRF consulta isso em `request.user`
    @property
    def is_authenticated(self) -> bool:
        return True

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


class UserGroup(models.Model):
    """Grupo de usuários com o qual clientes, deals, tarefas e contatos são compartilhados."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    users = models.ManyToManyField(User, related_name="crm_groups", db_table="user_group_members", blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "user_groups"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


# ╭──────────────────────────────────────────────╮
# │ 2. Clientes                                 │
# ╰──────────────────────────────────────────────╯
class Client(models.Model):
    class Status(models.TextChoices):
        NEW_LEAD = "NEW_LEAD", "Nowy lead"
        IN_CONTACT = "IN_CONTACT", "W kontakcie"
        DEMO_SENT = "DEMO_SENT", "Demo wysłane"
        NEGOTIATION = "NEGOTIATION", "Negocjacje"
        ACTIVE_CLIENT = "ACTIVE_CLIENT", "Aktywny klient"
        LOST = "LOST", "Utracony"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    first_name = models.CharField(max_length=100, blank=True, null=True)
    last_name = models.CharField(max_length=100, blank=True, null=True)
    agency_name = models.CharField(max_length=255, blank=True, null=True)
    email = models.EmailField(max_length=255, blank=True, null=True)
    phone = models.CharField(max_length=32, blank=True, null=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.NEW_LEAD, db_index=True)
    assigned_to = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="assigned_clients"
    )
    shared_groups = models.ManyToManyField(
        UserGroup, related_name="shared_clients", db_table="client_shared_groups", blank=True
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    version = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = "clients"
        indexes = [
            Index(fields=["assigned_to", "status"]),
        ]

    def __str__(self) -> str:
        return self.agency_name or f"{self.first_name or ''} {self.last_name or ''}".strip()


class ClientStatusHistory(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name="status_history")
    status = models.CharField(max_length=20, choices=Client.Status.choices)
    changed_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    notes = models.TextField(blank=True, null=True)
    changed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "client_status_history"
        ordering = ["-changed_at"]


# ╭──────────────────────────────────────────────╮
# │ 3. Deals                                    │
# ╰──────────────────────────────────────────────╯
class Deal(models.Model):
    class Stage(models.TextChoices):
        LEAD = "LEAD", "Lead"
        QUALIFIED = "QUALIFIED", "Zakwalifikowany"
        PROPOSAL = "PROPOSAL", "Oferta"
        NEGOTIATION = "NEGOTIATION", "Negocjacje"
        WON = "WON", "Wygrany"
        LOST = "LOST", "Przegrany"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name="deals")
    value = models.DecimalField(max_digits=14, decimal_places=2)
    currency = models.CharField(max_length=3, default="PLN")
    probability = models.PositiveSmallIntegerField(default=0)
    stage = models.CharField(max_length=20, choices=Stage.choices, default=Stage.LEAD, db_index=True)
    expected_close_date = models.DateField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    shared_groups = models.ManyToManyField(
        UserGroup, related_name="shared_deals", db_table="deal_shared_groups", blank=True
    )
    # timestamps vêm da entidade
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField(db_index=True)
    version = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = "deals"
        constraints = [
            CheckConstraint(condition=Q(value__gte=0), name="ck_deal_value_non_negative"),
            CheckConstraint(condition=Q(probability__gte=0, probability__lte=100), name="ck_deal_probability_range"),
        ]
        indexes = [
            Index(fields=["client", "stage"]),
        ]

    def __str__(self) -> str:
        return f"Deal {self.id} ({self.stage})"


# ╭──────────────────────────────────────────────╮
# │ 4. Tarefas / Contatos                       │
# ╰──────────────────────────────────────────────╯
class Task(models.Model):
    class Status(models.TextChoices):
        TODO = "TODO", "Do zrobienia"
        IN_PROGRESS = "IN_PROGRESS", "W trakcie"
        COMPLETED = "COMPLETED", "Zakończone"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    due_date = models.DateTimeField(blank=True, null=True, db_index=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.TODO, db_index=True)
    assigned_to = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="tasks"
    )
    client = models.ForeignKey(Client, on_delete=models.CASCADE, null=True, blank=True, related_name="tasks")
    shared_groups = models.ManyToManyField(
        UserGroup, related_name="shared_tasks", db_table="task_shared_groups", blank=True
    )
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()
    version = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = "tasks"


class Contact(models.Model):
    class Type(models.TextChoices):
        PHONE_CALL = "PHONE_CALL", "Telefon"
        EMAIL = "EMAIL", "E-mail"
        MEETING = "MEETING", "Spotkanie"
        LINKEDIN_MESSAGE = "LINKEDIN_MESSAGE", "Wiadomość LinkedIn"
        OTHER = "OTHER", "Inne"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name="contacts")
    type = models.CharField(max_length=20, choices=Type.choices, blank=True, null=True)
    date = models.DateTimeField(db_index=True)
    notes = models.TextField()
    is_note = models.BooleanField(default=False)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="contacts")
    shared_groups = models.ManyToManyField(
        UserGroup, related_name="shared_contacts", db_table="contact_shared_groups", blank=True
    )
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()
    version = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = "contacts"


# ╭──────────────────────────────────────────────╮
# │ 5. Auditoria                                │
# ╰──────────────────────────────────────────────╯
class ActivityLog(models.Model):
    """Append-only. Sem FK para usuário: a trilha sobrevive à remoção dele."""

    id = models.BigAutoField(primary_key=True)
    user_id = models.UUIDField(db_index=True)
    action = models.CharField(max_length=50, db_index=True)
    entity_type = models.CharField(max_length=30)
    entity_id = models.UUIDField(blank=True, null=True)
    details = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(blank=True, null=True)
    user_agent = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = "activity_logs"
        indexes = [
            Index(fields=["entity_type", "entity_id"]),
        ]
