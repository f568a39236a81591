"""Tests for LoggingPolicy."""

from chronicle.audit.policy import LoggingPolicy
from chronicle.audit.schema import EntitySchema, SchemaRegistry, type_name_of
from chronicle.config.models.audit import AuditConfig
from tests.factories import Customer, Invoice, SecretNote


class TestLoggingPolicy:
    """Tests for type and field checks."""

    def test_types_logged_by_default(self) -> None:
        """Unconfigured entity types are recorded."""
        policy = LoggingPolicy(SchemaRegistry(), AuditConfig())
        assert policy.should_log(Invoice) is True

    def test_excluded_by_qualified_name(self) -> None:
        """Excluded types match on their full name."""
        policy = LoggingPolicy(
            SchemaRegistry(), AuditConfig(excluded_types=[type_name_of(SecretNote)])
        )
        assert policy.should_log(SecretNote) is False
        assert policy.should_log(Invoice) is True

    def test_excluded_by_short_name(self) -> None:
        """Excluded types match on their class name too."""
        policy = LoggingPolicy(SchemaRegistry(), AuditConfig(excluded_types=["SecretNote"]))
        assert policy.should_log(SecretNote) is False

    def test_schema_flag(self) -> None:
        """A schema registered with log_events=False is skipped."""
        registry = SchemaRegistry()
        registry.register(Customer, EntitySchema.from_model(Customer, log_events=False))
        policy = LoggingPolicy(registry, AuditConfig())
        assert policy.should_log(Customer) is False

    def test_register_flag(self) -> None:
        """The log_events keyword on register() has the same effect."""
        registry = SchemaRegistry()
        registry.register(Customer, log_events=False)
        assert LoggingPolicy(registry, AuditConfig()).should_log(Customer) is False

    def test_should_log_field(self) -> None:
        """Only loggable fields are reported."""
        policy = LoggingPolicy(SchemaRegistry(), AuditConfig())
        assert policy.should_log_field(Invoice, "total") is True
        assert policy.should_log_field(Invoice, "notes") is False
        assert policy.should_log_field(Invoice, "id") is False
        assert policy.should_log_field(Invoice, "missing") is False

    def test_excluded_fields(self) -> None:
        """Fields named in the config are rejected by full or short type name."""
        policy = LoggingPolicy(
            SchemaRegistry(),
            AuditConfig(
                excluded_fields=["Invoice.customer", f"{type_name_of(Invoice)}.tags"]
            ),
        )
        assert policy.should_log_field(Invoice, "customer") is False
        assert policy.should_log_field(Invoice, "tags") is False
        assert policy.should_log_field(Invoice, "total") is True
        assert policy.should_log_field(Customer, "name") is True
