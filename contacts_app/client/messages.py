# Тексти інтерфейсу (іспанською).

APP_TITLE = "Mis Contactos"
LOADING = "Cargando..."
SIGN_OUT = "Cerrar Sesión"

CONTACTS_LOAD_ERROR = "Error al cargar los contactos"
CONTACT_CREATED = "Contacto creado"
CONTACT_UPDATED = "Contacto actualizado"
CONTACT_SAVE_ERROR = "Error al guardar el contacto"
CONTACT_DELETED = "Contacto eliminado"
CONTACT_DELETE_ERROR = "Error al eliminar el contacto"
CONFIRM_DELETE = "¿Estás seguro de que quieres eliminar este contacto?"
REQUIRED_FIELDS = "El nombre y el email son obligatorios"
NO_CONTACTS = "No hay contactos aún"
NO_MATCHES = "No se encontraron contactos"
NEW_CONTACT = "Agregar Nuevo Contacto"
EDIT_CONTACT = "Editar Contacto"
SORT_LABELS = {"name": "Nombre", "created_at": "Fecha"}

RESET_EMAIL_SENT = "¡Revisa tu correo electrónico para restablecer tu contraseña!"
PASSWORDS_DO_NOT_MATCH = "Las contraseñas no coinciden"
PASSWORD_UPDATED = "¡Contraseña actualizada correctamente! Redirigiendo..."
PASSWORD_UPDATE_ERROR = "Error al actualizar la contraseña"
LOGIN_ERROR = "Error al iniciar sesión"
