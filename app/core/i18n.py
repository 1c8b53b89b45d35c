"""Message catalog and request language detection."""

import logging

from fastapi import Request

from app.core.config import get_settings

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = {
    "en": "English",
    "es": "Español",
    "fr": "Français",
    "de": "Deutsch",
    "pt": "Português",
    "it": "Italiano",
    "ja": "日本語",
    "ko": "한국어",
    "zh": "中文",
    "ar": "العربية",
}

LANGUAGE_COOKIE = "bloomhabit-language"

# Keys missing a language fall back to English.
MESSAGES: dict[str, dict[str, str]] = {
    "errors.internal": {
        "en": "Something went wrong on our side. Please try again.",
        "es": "Algo salió mal de nuestro lado. Inténtalo de nuevo.",
        "fr": "Une erreur est survenue de notre côté. Veuillez réessayer.",
        "de": "Bei uns ist etwas schiefgelaufen. Bitte versuche es erneut.",
        "pt": "Algo deu errado do nosso lado. Tente novamente.",
        "it": "Qualcosa è andato storto. Riprova.",
        "ja": "サーバーでエラーが発生しました。もう一度お試しください。",
        "ko": "서버에서 문제가 발생했습니다. 다시 시도해 주세요.",
        "zh": "服务器出现问题，请重试。",
        "ar": "حدث خطأ ما من جانبنا. يرجى المحاولة مرة أخرى.",
    },
    "errors.not_found": {
        "en": "The requested resource was not found.",
        "es": "No se encontró el recurso solicitado.",
        "fr": "La ressource demandée est introuvable.",
        "de": "Die angeforderte Ressource wurde nicht gefunden.",
        "pt": "O recurso solicitado não foi encontrado.",
        "it": "La risorsa richiesta non è stata trovata.",
        "ja": "要求されたリソースが見つかりません。",
        "ko": "요청한 리소스를 찾을 수 없습니다.",
        "zh": "未找到请求的资源。",
        "ar": "لم يتم العثور على المورد المطلوب.",
    },
    "errors.conflict": {
        "en": "This resource already exists.",
        "es": "Este recurso ya existe.",
        "fr": "Cette ressource existe déjà.",
        "de": "Diese Ressource existiert bereits.",
        "pt": "Este recurso já existe.",
        "it": "Questa risorsa esiste già.",
        "ja": "このリソースは既に存在します。",
        "ko": "이 리소스는 이미 존재합니다.",
        "zh": "该资源已存在。",
        "ar": "هذا المورد موجود بالفعل.",
    },
    "errors.unauthorized": {
        "en": "You need to sign in to do that.",
        "es": "Necesitas iniciar sesión para hacer eso.",
        "fr": "Vous devez vous connecter pour faire cela.",
        "de": "Dafür musst du angemeldet sein.",
        "pt": "Você precisa entrar para fazer isso.",
        "it": "Devi accedere per farlo.",
        "ja": "この操作にはサインインが必要です。",
        "ko": "로그인이 필요합니다.",
        "zh": "请先登录。",
        "ar": "يجب تسجيل الدخول للقيام بذلك.",
    },
    "errors.forbidden": {
        "en": "You do not have permission to do that.",
        "es": "No tienes permiso para hacer eso.",
        "fr": "Vous n'avez pas la permission de faire cela.",
        "de": "Dafür hast du keine Berechtigung.",
        "pt": "Você não tem permissão para fazer isso.",
        "it": "Non hai il permesso di farlo.",
    },
    "errors.bad_request": {
        "en": "The request could not be processed.",
        "es": "No se pudo procesar la solicitud.",
        "fr": "La requête n'a pas pu être traitée.",
        "de": "Die Anfrage konnte nicht verarbeitet werden.",
        "pt": "Não foi possível processar a solicitação.",
        "it": "Impossibile elaborare la richiesta.",
        "ja": "リクエストを処理できませんでした。",
        "ko": "요청을 처리할 수 없습니다.",
        "zh": "无法处理该请求。",
        "ar": "تعذرت معالجة الطلب.",
    },
    "errors.too_many_requests": {
        "en": "Too many requests. Please slow down.",
        "es": "Demasiadas solicitudes. Ve más despacio.",
        "fr": "Trop de requêtes. Veuillez ralentir.",
        "de": "Zu viele Anfragen. Bitte langsamer.",
    },
    "errors.service_unavailable": {
        "en": "This service is currently unavailable.",
        "es": "Este servicio no está disponible en este momento.",
        "fr": "Ce service est actuellement indisponible.",
        "de": "Dieser Dienst ist derzeit nicht verfügbar.",
        "pt": "Este serviço está indisponível no momento.",
        "it": "Questo servizio non è al momento disponibile.",
    },
    "auth.invalid_credentials": {
        "en": "Invalid credentials",
        "es": "Credenciales inválidas",
        "fr": "Identifiants invalides",
        "de": "Ungültige Anmeldedaten",
        "pt": "Credenciais inválidas",
        "it": "Credenziali non valide",
        "ja": "認証情報が無効です",
        "ko": "잘못된 인증 정보입니다",
        "zh": "凭据无效",
        "ar": "بيانات الاعتماد غير صالحة",
    },
    "auth.email_exists": {
        "en": "User with this email already exists",
        "es": "Ya existe un usuario con este correo electrónico",
        "fr": "Un utilisateur avec cet e-mail existe déjà",
        "de": "Ein Benutzer mit dieser E-Mail existiert bereits",
        "pt": "Já existe um usuário com este e-mail",
        "it": "Esiste già un utente con questa email",
    },
    "auth.invalid_token": {
        "en": "Invalid or expired token",
        "es": "Token inválido o caducado",
        "fr": "Jeton invalide ou expiré",
        "de": "Ungültiges oder abgelaufenes Token",
        "pt": "Token inválido ou expirado",
        "it": "Token non valido o scaduto",
    },
    "auth.unsupported_provider": {
        "en": "Unsupported OAuth provider: {provider}",
        "es": "Proveedor OAuth no compatible: {provider}",
        "fr": "Fournisseur OAuth non pris en charge : {provider}",
        "de": "Nicht unterstützter OAuth-Anbieter: {provider}",
    },
    "auth.oauth_account_mismatch": {
        "en": "This account is linked to a different {provider} identity",
        "es": "Esta cuenta está vinculada a otra identidad de {provider}",
        "fr": "Ce compte est lié à une autre identité {provider}",
        "de": "Dieses Konto ist mit einer anderen {provider}-Identität verknüpft",
    },
    "habit.not_found": {
        "en": "Habit not found",
        "es": "Hábito no encontrado",
        "fr": "Habitude introuvable",
        "de": "Gewohnheit nicht gefunden",
        "pt": "Hábito não encontrado",
        "it": "Abitudine non trovata",
        "ja": "習慣が見つかりません",
        "ko": "습관을 찾을 수 없습니다",
        "zh": "未找到习惯",
        "ar": "لم يتم العثور على العادة",
    },
    "goal.not_found": {
        "en": "Goal not found",
        "es": "Meta no encontrada",
        "fr": "Objectif introuvable",
        "de": "Ziel nicht gefunden",
    },
    "goal.invalid_dates": {
        "en": "The target date must not be before the start date",
        "es": "La fecha objetivo no puede ser anterior a la fecha de inicio",
        "fr": "La date cible ne peut pas précéder la date de début",
        "de": "Das Zieldatum darf nicht vor dem Startdatum liegen",
    },
    "goal.not_active": {
        "en": "This goal is {status}, not active",
        "es": "Esta meta está en estado {status}, no activa",
        "fr": "Cet objectif est {status}, pas actif",
        "de": "Dieses Ziel ist {status}, nicht aktiv",
    },
    "goal.not_paused": {
        "en": "Only paused goals can be resumed",
        "es": "Solo se pueden reanudar las metas en pausa",
        "fr": "Seuls les objectifs en pause peuvent être repris",
        "de": "Nur pausierte Ziele können fortgesetzt werden",
    },
    "goal.already_completed": {
        "en": "This goal is already completed",
        "es": "Esta meta ya está completada",
        "fr": "Cet objectif est déjà atteint",
        "de": "Dieses Ziel ist bereits erreicht",
    },
    "wearable.not_found": {
        "en": "Wearable device not found",
        "es": "Dispositivo portátil no encontrado",
        "fr": "Appareil connecté introuvable",
        "de": "Wearable nicht gefunden",
    },
    "wearable.already_connected": {
        "en": "Device with provider {provider} already exists for this user",
        "es": "Ya existe un dispositivo del proveedor {provider} para este usuario",
        "fr": "Un appareil du fournisseur {provider} existe déjà pour cet utilisateur",
        "de": "Für diesen Benutzer existiert bereits ein Gerät von {provider}",
    },
    "health_data.not_found": {
        "en": "Health data not found",
        "es": "Datos de salud no encontrados",
        "fr": "Données de santé introuvables",
        "de": "Gesundheitsdaten nicht gefunden",
    },
    "integration.not_found": {
        "en": "{kind} integration not found",
        "es": "Integración {kind} no encontrada",
        "fr": "Intégration {kind} introuvable",
        "de": "{kind}-Integration nicht gefunden",
    },
    "integration.already_exists": {
        "en": "{kind} integration for {provider} already exists",
        "es": "La integración {kind} para {provider} ya existe",
        "fr": "L'intégration {kind} pour {provider} existe déjà",
        "de": "{kind}-Integration für {provider} existiert bereits",
    },
    "integration.credentials_expired": {
        "en": "Credentials for {provider} have expired. Please reconnect.",
        "es": "Las credenciales de {provider} han caducado. Vuelve a conectar.",
        "fr": "Les identifiants {provider} ont expiré. Veuillez vous reconnecter.",
        "de": "Die Zugangsdaten für {provider} sind abgelaufen. Bitte erneut verbinden.",
    },
    "integration.credentials_invalid": {
        "en": "Credentials for {provider} are invalid. Please reconnect.",
        "es": "Las credenciales de {provider} no son válidas. Vuelve a conectar.",
        "fr": "Les identifiants {provider} sont invalides. Veuillez vous reconnecter.",
        "de": "Die Zugangsdaten für {provider} sind ungültig. Bitte erneut verbinden.",
    },
    "integration.auto_create_disabled": {
        "en": "Auto-create habits is disabled for this integration",
        "es": "La creación automática de hábitos está desactivada para esta integración",
        "fr": "La création automatique d'habitudes est désactivée pour cette intégration",
        "de": "Automatisches Erstellen von Gewohnheiten ist für diese Integration deaktiviert",
    },
    "integration.priority_below_threshold": {
        "en": "Task priority is below the habit creation threshold",
        "es": "La prioridad de la tarea está por debajo del umbral de creación de hábitos",
        "fr": "La priorité de la tâche est inférieure au seuil de création d'habitudes",
        "de": "Die Aufgabenpriorität liegt unter der Schwelle zum Erstellen von Gewohnheiten",
    },
    "integration.rule_not_found": {
        "en": "Automation rule not found",
        "es": "Regla de automatización no encontrada",
        "fr": "Règle d'automatisation introuvable",
        "de": "Automatisierungsregel nicht gefunden",
    },
    "queue.unknown_queue": {
        "en": "Unknown queue: {queue}",
        "es": "Cola desconocida: {queue}",
        "fr": "File inconnue : {queue}",
        "de": "Unbekannte Warteschlange: {queue}",
    },
    "queue.unknown_job": {
        "en": "Unknown job {name} for queue {queue}",
        "es": "Trabajo desconocido {name} para la cola {queue}",
        "fr": "Tâche inconnue {name} pour la file {queue}",
        "de": "Unbekannter Job {name} für Warteschlange {queue}",
    },
    "queue.job_not_found": {
        "en": "Job not found",
        "es": "Trabajo no encontrado",
        "fr": "Tâche introuvable",
        "de": "Job nicht gefunden",
    },
    "queue.invalid_clean_status": {
        "en": "Only completed or failed jobs can be cleaned",
        "es": "Solo se pueden limpiar trabajos completados o fallidos",
        "fr": "Seules les tâches terminées ou échouées peuvent être nettoyées",
        "de": "Nur abgeschlossene oder fehlgeschlagene Jobs können bereinigt werden",
    },
    "monitoring.disabled": {
        "en": "Monitoring is disabled",
        "es": "La monitorización está desactivada",
        "fr": "La surveillance est désactivée",
        "de": "Monitoring ist deaktiviert",
    },
    "monitoring.health_disabled": {
        "en": "Health checks are disabled",
        "es": "Las comprobaciones de estado están desactivadas",
        "fr": "Les contrôles de santé sont désactivés",
        "de": "Health-Checks sind deaktiviert",
    },
}

# Generic fallback per HTTP status for errors raised without a specific key
STATUS_MESSAGE_KEYS = {
    400: "errors.bad_request",
    401: "errors.unauthorized",
    403: "errors.forbidden",
    404: "errors.not_found",
    409: "errors.conflict",
    429: "errors.too_many_requests",
    503: "errors.service_unavailable",
}


def is_supported(lang: str | None) -> bool:
    return bool(lang) and lang in SUPPORTED_LANGUAGES


def parse_accept_language(header: str) -> str | None:
    """First supported primary tag in an Accept-Language header.

    Order in the header wins; q-values are not re-sorted.
    """
    for part in header.split(","):
        tag = part.strip().split(";")[0].split("-")[0].lower()
        if is_supported(tag):
            return tag
    return None


def detect_language(request: Request) -> str:
    """Pick the response language: ?lang=, then Accept-Language, then cookie."""
    query_lang = request.query_params.get("lang")
    if query_lang and is_supported(query_lang.lower()):
        return query_lang.lower()

    header = request.headers.get("accept-language")
    if header:
        lang = parse_accept_language(header)
        if lang:
            return lang

    cookie_lang = request.cookies.get(LANGUAGE_COOKIE)
    if is_supported(cookie_lang):
        return cookie_lang

    default = get_settings().default_language
    return default if is_supported(default) else "en"


def translate(key: str, lang: str = "en", **params) -> str:
    """Look up a message, falling back to English and then to the key itself."""
    entry = MESSAGES.get(key)
    if entry is None:
        return key
    text = entry.get(lang) or entry["en"]
    if not params:
        return text
    try:
        return text.format(**params)
    except (KeyError, IndexError):
        logger.warning(f"Missing parameters for message {key}: {params}")
        return text


def catalog(lang: str) -> dict[str, str]:
    """Every message in one language."""
    return {key: entry.get(lang) or entry["en"] for key, entry in MESSAGES.items()}
