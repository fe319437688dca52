"""Initial schema: OPMC directory, service orders and their history and material usage.

Revision ID: 0001
Revises:     (none)
Create Date: 2026-10-19
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op


def upgrade() -> None:
    # ---------------------------------------------------------------------- #
    # Enable pgcrypto for gen_random_uuid()                                   #
    # ---------------------------------------------------------------------- #
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # ------------------------------------------------------------------ #
    # opmcs                                                                #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE opmcs (
            id         UUID         NOT NULL DEFAULT gen_random_uuid(),
            rtom       VARCHAR(20)  NOT NULL,
            name       VARCHAR(200) NOT NULL,
            region     VARCHAR(50)  NOT NULL,
            province   VARCHAR(50)  NOT NULL,
            created_at TIMESTAMP    NOT NULL DEFAULT (NOW() AT TIME ZONE 'UTC'),
            CONSTRAINT pk_opmcs PRIMARY KEY (id),
            CONSTRAINT uq_opmcs_rtom UNIQUE (rtom)
        )
    """)

    # ------------------------------------------------------------------ #
    # contractor_teams                                                     #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE contractor_teams (
            id         UUID         NOT NULL DEFAULT gen_random_uuid(),
            opmc_id    UUID         NOT NULL,
            name       VARCHAR(200) NOT NULL,
            is_active  BOOLEAN      NOT NULL DEFAULT TRUE,
            created_at TIMESTAMP    NOT NULL DEFAULT (NOW() AT TIME ZONE 'UTC'),
            CONSTRAINT pk_contractor_teams PRIMARY KEY (id),
            CONSTRAINT fk_contractor_teams_opmc FOREIGN KEY (opmc_id)
                REFERENCES opmcs (id) ON DELETE CASCADE
        )
    """)
    op.execute("CREATE INDEX idx_contractor_teams_opmc ON contractor_teams (opmc_id)")

    # ------------------------------------------------------------------ #
    # inventory_items                                                      #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE inventory_items (
            id       UUID         NOT NULL DEFAULT gen_random_uuid(),
            code     VARCHAR(50)  NOT NULL,
            name     VARCHAR(200) NOT NULL,
            category VARCHAR(100),
            unit     VARCHAR(20),
            CONSTRAINT pk_inventory_items PRIMARY KEY (id),
            CONSTRAINT uq_inventory_items_code UNIQUE (code)
        )
    """)

    # ------------------------------------------------------------------ #
    # service_orders                                                       #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE service_orders (
            id              UUID          NOT NULL DEFAULT gen_random_uuid(),
            so_num          VARCHAR(50)   NOT NULL,
            rtom            VARCHAR(20)   NOT NULL,
            opmc_id         UUID,
            order_type      VARCHAR(100),
            package         VARCHAR(200),
            status          VARCHAR(50),
            slts_status     VARCHAR(30),
            received_date   TIMESTAMP,
            completed_date  TIMESTAMP,
            status_date     TIMESTAMP,
            team_id         UUID,
            delay_reasons   JSONB,
            stb_shortage    BOOLEAN       NOT NULL DEFAULT FALSE,
            ont_shortage    BOOLEAN       NOT NULL DEFAULT FALSE,
            material_source VARCHAR(10)   NOT NULL DEFAULT 'SLT',
            created_at      TIMESTAMP     NOT NULL DEFAULT (NOW() AT TIME ZONE 'UTC'),
            updated_at      TIMESTAMP     NOT NULL DEFAULT (NOW() AT TIME ZONE 'UTC'),
            CONSTRAINT pk_service_orders PRIMARY KEY (id),
            CONSTRAINT fk_service_orders_opmc FOREIGN KEY (opmc_id)
                REFERENCES opmcs (id) ON DELETE SET NULL,
            CONSTRAINT fk_service_orders_team FOREIGN KEY (team_id)
                REFERENCES contractor_teams (id) ON DELETE SET NULL,
            CONSTRAINT chk_service_orders_material_source CHECK (
                material_source IN ('SLT', 'COMPANY')
            )
        )
    """)
    # Day-window filters and the backlog query
    op.execute("CREATE INDEX idx_service_orders_created ON service_orders (created_at)")
    op.execute("CREATE INDEX idx_service_orders_received ON service_orders (received_date)")
    op.execute("CREATE INDEX idx_service_orders_completed ON service_orders (completed_date)")
    op.execute("CREATE INDEX idx_service_orders_status_date ON service_orders (status_date)")
    op.execute("CREATE INDEX idx_service_orders_rtom_type ON service_orders (rtom, order_type)")
    op.execute("CREATE INDEX idx_service_orders_opmc ON service_orders (opmc_id)")

    # ------------------------------------------------------------------ #
    # service_order_status_history  (append-only)                          #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE service_order_status_history (
            id               UUID        NOT NULL DEFAULT gen_random_uuid(),
            service_order_id UUID        NOT NULL,
            status           VARCHAR(50) NOT NULL,
            status_date      TIMESTAMP   NOT NULL,
            CONSTRAINT pk_service_order_status_history PRIMARY KEY (id),
            CONSTRAINT fk_status_history_order FOREIGN KEY (service_order_id)
                REFERENCES service_orders (id) ON DELETE CASCADE
        )
    """)
    op.execute(
        "CREATE INDEX idx_status_history_date_order "
        "ON service_order_status_history (status_date, service_order_id)"
    )

    # ------------------------------------------------------------------ #
    # sod_material_usage                                                   #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE sod_material_usage (
            id               UUID           NOT NULL DEFAULT gen_random_uuid(),
            service_order_id UUID           NOT NULL,
            item_id          UUID           NOT NULL,
            quantity         NUMERIC(12,3)  NOT NULL,
            CONSTRAINT pk_sod_material_usage PRIMARY KEY (id),
            CONSTRAINT fk_material_usage_order FOREIGN KEY (service_order_id)
                REFERENCES service_orders (id) ON DELETE CASCADE,
            CONSTRAINT fk_material_usage_item FOREIGN KEY (item_id)
                REFERENCES inventory_items (id)
        )
    """)
    op.execute("CREATE INDEX idx_material_usage_order ON sod_material_usage (service_order_id)")

    # ------------------------------------------------------------------ #
    # updated_at auto-refresh trigger on service_orders                    #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW() AT TIME ZONE 'UTC';
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql
    """)
    op.execute("""
        CREATE TRIGGER trg_service_orders_updated_at
        BEFORE UPDATE ON service_orders
        FOR EACH ROW EXECUTE FUNCTION update_updated_at_column()
    """)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trg_service_orders_updated_at ON service_orders")
    op.execute("DROP FUNCTION IF EXISTS update_updated_at_column")
    op.execute("DROP TABLE IF EXISTS sod_material_usage CASCADE")
    op.execute("DROP TABLE IF EXISTS service_order_status_history CASCADE")
    op.execute("DROP TABLE IF EXISTS service_orders CASCADE")
    op.execute("DROP TABLE IF EXISTS inventory_items CASCADE")
    op.execute("DROP TABLE IF EXISTS contractor_teams CASCADE")
    op.execute("DROP TABLE IF EXISTS opmcs CASCADE")
