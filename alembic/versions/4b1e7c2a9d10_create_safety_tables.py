"""create safety tables

Revision ID: 4b1e7c2a9d10
Revises:
Create Date: 2026-10-18 09:12:40.118204

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "4b1e7c2a9d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONType = sa.JSON().with_variant(postgresql.JSONB, "postgresql")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("email", sa.String(150), nullable=True),
        sa.Column("is_fisherman", sa.Boolean, nullable=False),
        sa.Column("boat_name", sa.String(100), nullable=True),
        sa.Column("current_latitude", sa.Float, nullable=True),
        sa.Column("current_longitude", sa.Float, nullable=True),
        sa.Column("location_updated_at", sa.DateTime, nullable=True),
        sa.Column("home_port_latitude", sa.Float, nullable=True),
        sa.Column("home_port_longitude", sa.Float, nullable=True),
        sa.Column("is_online", sa.Boolean, nullable=False),
        sa.Column("max_offshore_km", sa.Float, nullable=True),
        sa.Column("role", sa.Integer, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("idx_users_on_is_online", "users", ["is_online"])
    op.create_index(
        "idx_users_on_location", "users", ["current_latitude", "current_longitude"]
    )

    op.create_table(
        "emergency_contacts",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("phone", sa.String(50), nullable=False),
        sa.Column("relationship_to_user", sa.String(50), nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_emergency_contacts_user_id", "emergency_contacts", ["user_id"])

    op.create_table(
        "alerts",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("severity", sa.Integer, nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("priority", sa.String(20), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.String(1000), nullable=False),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("location_name", sa.String(255), nullable=True),
        sa.Column("accuracy_m", sa.Float, nullable=True),
        sa.Column("radius_km", sa.Float, nullable=False),
        sa.Column("user_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("user_name", sa.String(150), nullable=False),
        sa.Column("triggered_at", sa.DateTime, server_default=sa.func.now(), nullable=False),
        sa.Column("expires_at", sa.DateTime, nullable=False),
        sa.Column("resolved_at", sa.DateTime, nullable=True),
        sa.Column("distress_detail", JSONType, nullable=True),
        sa.Column("weather_detail", JSONType, nullable=True),
        sa.Column("hazard_detail", JSONType, nullable=True),
        sa.Column("resolution_notes", sa.Text, nullable=True),
        sa.Column("resolved_by_id", sa.Uuid(as_uuid=True), nullable=True),
        sa.Column("resolved_by_name", sa.String(150), nullable=True),
        sa.Column("sms_sent", sa.Boolean, nullable=False),
        sa.Column("push_sent", sa.Boolean, nullable=False),
        sa.Column("email_sent", sa.Boolean, nullable=False),
        sa.Column("authorities_notified", sa.Boolean, nullable=False),
        sa.Column("community_notified", sa.Boolean, nullable=False),
        sa.Column("source", sa.String(20), nullable=False),
        sa.Column("confidence", sa.Integer, nullable=False),
        sa.Column("tags", JSONType, nullable=True),
        sa.Column("view_count", sa.Integer, nullable=False),
        sa.Column("response_time_s", sa.Integer, nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "confidence >= 0 AND confidence <= 100", name="ck_alerts_confidence"
        ),
    )
    op.create_index("idx_alerts_type", "alerts", ["type"])
    op.create_index("idx_alerts_severity", "alerts", ["severity"])
    op.create_index("idx_alerts_status", "alerts", ["status"])
    op.create_index("idx_alerts_user_id", "alerts", ["user_id"])
    op.create_index("idx_alerts_location", "alerts", ["latitude", "longitude"])
    op.create_index("idx_alerts_triggered", "alerts", ["triggered_at"])
    op.create_index("idx_alerts_status_expires", "alerts", ["status", "expires_at"])

    op.create_table(
        "alert_acknowledgments",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "alert_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("alerts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("user_name", sa.String(150), nullable=False),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("acknowledged_at", sa.DateTime, server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("alert_id", "user_id", name="uq_alert_ack_user"),
    )

    op.create_table(
        "alert_assistance",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "alert_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("alerts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("provider_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("provider_name", sa.String(150), nullable=False),
        sa.Column("assistance_type", sa.String(50), nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("provided_at", sa.DateTime, server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_alert_assistance_alert", "alert_assistance", ["alert_id"])

    op.create_table(
        "hazard_confirmations",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "alert_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("alerts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("user_name", sa.String(150), nullable=False),
        sa.Column("confirmed_at", sa.DateTime, server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("alert_id", "user_id", name="uq_hazard_confirmation_user"),
    )

    op.create_table(
        "weather_snapshots",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("location_name", sa.String(255), nullable=True),
        sa.Column("temperature_c", sa.Float, nullable=False),
        sa.Column("humidity", sa.Float, nullable=False),
        sa.Column("pressure_hpa", sa.Float, nullable=False),
        sa.Column("visibility_km", sa.Float, nullable=True),
        sa.Column("wind_speed_kmh", sa.Float, nullable=False),
        sa.Column("wind_direction", sa.Float, nullable=True),
        sa.Column("wind_gust_kmh", sa.Float, nullable=True),
        sa.Column("precipitation_mm", sa.Float, nullable=True),
        sa.Column("precipitation_probability", sa.Float, nullable=True),
        sa.Column("cloud_cover", sa.Float, nullable=True),
        sa.Column("wave_height_m", sa.Float, nullable=True),
        sa.Column("wave_direction", sa.Float, nullable=True),
        sa.Column("wave_period_s", sa.Float, nullable=True),
        sa.Column("swell_height_m", sa.Float, nullable=True),
        sa.Column("swell_direction", sa.Float, nullable=True),
        sa.Column("swell_period_s", sa.Float, nullable=True),
        sa.Column("water_temperature_c", sa.Float, nullable=True),
        sa.Column("tide_state", sa.String(20), nullable=True),
        sa.Column("tide_height_m", sa.Float, nullable=True),
        sa.Column("current_speed_ms", sa.Float, nullable=True),
        sa.Column("current_direction", sa.Float, nullable=True),
        sa.Column("condition", sa.String(30), nullable=False),
        sa.Column("condition_description", sa.String(255), nullable=True),
        sa.Column("sunrise", sa.DateTime, nullable=True),
        sa.Column("sunset", sa.DateTime, nullable=True),
        sa.Column("moon_phase", sa.String(30), nullable=True),
        sa.Column("risk_level", sa.Integer, nullable=False),
        sa.Column("risk_factors", JSONType, nullable=True),
        sa.Column("fishing_score", sa.Integer, nullable=False),
        sa.Column("fishing_rating", sa.String(20), nullable=False),
        sa.Column("fishing_factors", JSONType, nullable=True),
        sa.Column("recommendations", JSONType, nullable=True),
        sa.Column("provider", sa.String(50), nullable=False),
        sa.Column("recorded_at", sa.DateTime, server_default=sa.func.now(), nullable=False),
        sa.Column("expires_at", sa.DateTime, nullable=False),
        sa.Column("is_current", sa.Boolean, nullable=False),
        sa.Column("is_forecast", sa.Boolean, nullable=False),
        *_timestamps(),
    )
    op.create_index("idx_weather_location", "weather_snapshots", ["latitude", "longitude"])
    op.create_index("idx_weather_recorded", "weather_snapshots", ["recorded_at"])
    op.create_index("idx_weather_expires", "weather_snapshots", ["expires_at"])
    op.create_index("idx_weather_current", "weather_snapshots", ["is_current"])
    op.create_index("idx_weather_risk", "weather_snapshots", ["risk_level"])

    op.create_table(
        "daily_analytics",
        sa.Column("day", sa.Date, primary_key=True),
        sa.Column("total_catches", sa.Integer, nullable=False),
        sa.Column("total_weight", sa.Float, nullable=False),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now(), nullable=False),
        sa.Column("last_updated", sa.DateTime, server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "user_statistics",
        sa.Column("user_id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("emergency_activations", sa.Integer, nullable=False),
        sa.Column("catch_reports", sa.Integer, nullable=False),
        sa.Column("total_catch", sa.Float, nullable=False),
        sa.Column("last_updated", sa.DateTime, server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "outbound_messages",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("recipient", sa.String(150), nullable=False),
        sa.Column("channel", sa.String(20), nullable=False),
        sa.Column("body", sa.Text, nullable=False),
        sa.Column("priority", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("kind", sa.String(50), nullable=False),
        sa.Column("alert_id", sa.Uuid(as_uuid=True), nullable=True),
        sa.Column("payload", JSONType, nullable=True),
        sa.Column("attempts", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_outbound_messages_status", "outbound_messages", ["status"])
    op.create_index("idx_outbound_messages_alert", "outbound_messages", ["alert_id"])
    op.create_index("idx_outbound_messages_created", "outbound_messages", ["created_at"])

    op.create_table(
        "audit_trail",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("actor_id", sa.Uuid(as_uuid=True), nullable=True),
        sa.Column("actor_role", sa.Integer, nullable=False),
        sa.Column("action", sa.String(255), nullable=False),
        sa.Column("resource_type", sa.String(255), nullable=False),
        sa.Column("resource_id", sa.Uuid(as_uuid=True), nullable=True),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("timestamp", sa.DateTime, server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_audit_trail_on_actor_id", "audit_trail", ["actor_id"])
    op.create_index("idx_audit_trail_on_action", "audit_trail", ["action"])
    op.create_index("idx_audit_trail_on_resource_type", "audit_trail", ["resource_type"])
    op.create_index("idx_audit_trail_on_timestamp", "audit_trail", ["timestamp"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("audit_trail")
    op.drop_table("outbound_messages")
    op.drop_table("user_statistics")
    op.drop_table("daily_analytics")
    op.drop_table("weather_snapshots")
    op.drop_table("hazard_confirmations")
    op.drop_table("alert_assistance")
    op.drop_table("alert_acknowledgments")
    op.drop_table("alerts")
    op.drop_table("emergency_contacts")
    op.drop_table("users")
