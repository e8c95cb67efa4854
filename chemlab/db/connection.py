"""Database connection and schema management."""

import duckdb
from typing import Optional
from pathlib import Path
from ..utils.logger import get_app_logger


SEQUENCES = (
    "users_id_seq",
    "chemicals_id_seq",
    "equipment_id_seq",
    "borrowings_id_seq",
    "lecture_schedules_id_seq",
    "chemical_usage_logs_id_seq",
    "chat_conversations_id_seq",
    "chat_context_id_seq",
    "chatbot_audit_log_id_seq",
)


class DatabaseConnection:
    """DuckDB connection manager."""

    def __init__(self, db_path: str = "./data/chemlab.db"):
        """
        Initialize database connection.

        Args:
            db_path: Path to DuckDB database file
        """
        self.db_path = db_path
        self.logger = get_app_logger()
        self.conn: Optional[duckdb.DuckDBPyConnection] = None

        # Ensure database directory exists
        db_dir = Path(db_path).parent
        db_dir.mkdir(parents=True, exist_ok=True)

        self._connect()
        self._init_schema()

    def _connect(self):
        """Connect to DuckDB database."""
        try:
            self.conn = duckdb.connect(self.db_path)
            self.logger.info(f"Connected to DuckDB at {self.db_path}")
        except Exception as e:
            self.logger.error(f"Failed to connect to DuckDB: {e}")
            raise

    def _init_schema(self):
        """Initialize database schema."""
        try:
            # Sequences must exist before the tables that default to them
            for sequence in SEQUENCES:
                self.conn.execute(f"CREATE SEQUENCE IF NOT EXISTS {sequence} START 1")

            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id BIGINT PRIMARY KEY DEFAULT nextval('users_id_seq'),
                    name VARCHAR NOT NULL,
                    email VARCHAR,
                    role VARCHAR NOT NULL,
                    created_at TIMESTAMP DEFAULT current_timestamp
                )
            """)

            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS chemicals (
                    id BIGINT PRIMARY KEY DEFAULT nextval('chemicals_id_seq'),
                    name VARCHAR NOT NULL,
                    category VARCHAR,
                    quantity DOUBLE NOT NULL DEFAULT 0,
                    unit VARCHAR,
                    storage_location VARCHAR,
                    expiry_date DATE,
                    hazard_class VARCHAR,
                    storage_conditions VARCHAR,
                    safety_precautions VARCHAR,
                    cas_number VARCHAR,
                    molecular_formula VARCHAR,
                    molecular_weight DOUBLE,
                    created_at TIMESTAMP DEFAULT current_timestamp
                )
            """)

            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS equipment (
                    id BIGINT PRIMARY KEY DEFAULT nextval('equipment_id_seq'),
                    name VARCHAR NOT NULL,
                    category VARCHAR,
                    condition VARCHAR,
                    status VARCHAR NOT NULL DEFAULT 'available',
                    location VARCHAR,
                    maintenance_schedule INTEGER,
                    last_maintenance_date DATE,
                    next_calibration_date DATE,
                    serial_number VARCHAR,
                    manufacturer VARCHAR,
                    model VARCHAR,
                    created_at TIMESTAMP DEFAULT current_timestamp
                )
            """)

            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS borrowings (
                    id BIGINT PRIMARY KEY DEFAULT nextval('borrowings_id_seq'),
                    borrower_id BIGINT NOT NULL,
                    chemical_id BIGINT,
                    equipment_id BIGINT,
                    quantity DOUBLE,
                    purpose VARCHAR,
                    status VARCHAR NOT NULL DEFAULT 'pending',
                    borrow_date DATE,
                    return_date DATE,
                    created_at TIMESTAMP DEFAULT current_timestamp
                )
            """)

            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS lecture_schedules (
                    id BIGINT PRIMARY KEY DEFAULT nextval('lecture_schedules_id_seq'),
                    title VARCHAR NOT NULL,
                    lab_name VARCHAR,
                    scheduled_date DATE NOT NULL,
                    start_time VARCHAR,
                    end_time VARCHAR,
                    instructor VARCHAR,
                    description VARCHAR,
                    created_at TIMESTAMP DEFAULT current_timestamp
                )
            """)

            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS chemical_usage_logs (
                    id BIGINT PRIMARY KEY DEFAULT nextval('chemical_usage_logs_id_seq'),
                    chemical_id BIGINT NOT NULL,
                    user_id BIGINT NOT NULL,
                    quantity_used DOUBLE NOT NULL,
                    remaining_quantity DOUBLE NOT NULL,
                    usage_date TIMESTAMP NOT NULL,
                    purpose VARCHAR,
                    notes VARCHAR,
                    experiment_reference VARCHAR
                )
            """)

            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS chat_conversations (
                    id BIGINT PRIMARY KEY DEFAULT nextval('chat_conversations_id_seq'),
                    user_id BIGINT NOT NULL,
                    conversation_type VARCHAR NOT NULL DEFAULT 'bot',
                    status VARCHAR NOT NULL DEFAULT 'active',
                    title VARCHAR,
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
            """)

            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS chat_context (
                    id BIGINT PRIMARY KEY DEFAULT nextval('chat_context_id_seq'),
                    conversation_id BIGINT NOT NULL,
                    context_key VARCHAR NOT NULL,
                    context_value VARCHAR,
                    updated_at TIMESTAMP NOT NULL,
                    UNIQUE (conversation_id, context_key)
                )
            """)

            # Audit rows outlive users, so user_id is not constrained
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS chatbot_audit_log (
                    id BIGINT PRIMARY KEY DEFAULT nextval('chatbot_audit_log_id_seq'),
                    user_id BIGINT,
                    query_text VARCHAR NOT NULL,
                    response_text VARCHAR,
                    query_type VARCHAR,
                    created_at TIMESTAMP NOT NULL
                )
            """)

            # Create indexes
            self.conn.execute("CREATE INDEX IF NOT EXISTS idx_chemicals_name ON chemicals(name)")
            self.conn.execute("CREATE INDEX IF NOT EXISTS idx_equipment_name ON equipment(name)")
            self.conn.execute("CREATE INDEX IF NOT EXISTS idx_borrowings_borrower ON borrowings(borrower_id)")
            self.conn.execute("CREATE INDEX IF NOT EXISTS idx_borrowings_equipment ON borrowings(equipment_id)")
            self.conn.execute("CREATE INDEX IF NOT EXISTS idx_schedules_date ON lecture_schedules(scheduled_date)")
            self.conn.execute("CREATE INDEX IF NOT EXISTS idx_usage_chemical ON chemical_usage_logs(chemical_id)")
            self.conn.execute("CREATE INDEX IF NOT EXISTS idx_conversations_user ON chat_conversations(user_id, status)")
            self.conn.execute("CREATE INDEX IF NOT EXISTS idx_audit_user ON chatbot_audit_log(user_id)")

            self.logger.info("Database schema initialized successfully")

        except Exception as e:
            self.logger.error(f"Failed to initialize database schema: {e}")
            raise

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.logger.info("Database connection closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
