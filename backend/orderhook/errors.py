class ConfigurationError(Exception):
    pass


class SignatureError(Exception):
    pass


class MalformedPayloadError(Exception):
    pass


class NotifierConfigError(ConfigurationError):
    pass


class MailDeliveryError(Exception):
    pass
