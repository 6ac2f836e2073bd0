"""Database table name constants and type references."""

# Table names used by every Supabase query
USERS = "users"
REFRESH_TOKENS = "refresh_tokens"
SERVICES = "services"
SERVICE_CATEGORIES = "service_categories"
SERVICE_CATEGORY_LINKS = "service_category_links"
ACTIVITY_LOGS = "activity_logs"
NOTIFICATIONS = "notifications"
DENTAL_MODELS = "dental_models"

# Role constants
ROLE_ADMIN = "admin"
ROLE_PATIENT = "patient"
ROLE_DENTIST = "dentist"
VALID_ROLES = {ROLE_ADMIN, ROLE_PATIENT, ROLE_DENTIST}
APP_ROLES = {ROLE_PATIENT, ROLE_DENTIST}

# Profile columns returned to clients. Password material lives in Supabase Auth only.
USER_COLUMNS = (
    "id, username, usertype, firstname, lastname, birthdate, contact, address, "
    "gender, allergies, medicalhistory, is_deleted, deleted_at, created_at, updated_at"
)

# Grouped listing bucket for services without a category (a service has at most one)
UNCATEGORIZED_NAME = "No Category"
