"""Custom exceptions for the ML PDV Web application."""

class PdvError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="Ocorreu um erro interno", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv

class BusinessLogicError(PdvError):
    """Exception raised for business rule or form validation violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)

class NotFoundError(PdvError):
    """Exception raised when a company or record does not exist."""
    def __init__(self, message="Registro não encontrado", payload=None):
        super().__init__(message, 404, payload)

class CompanyNotFoundError(NotFoundError):
    """The tenant key does not resolve to a registered company."""
    def __init__(self, tenant_key=None):
        super().__init__('Empresa não encontrada', payload={'cnpj': tenant_key} if tenant_key else None)

class CredentialRejectedError(PdvError):
    """Login identifier and password were not accepted by the store."""
    def __init__(self, message="CPF ou senha incorretos"):
        super().__init__(message, 401)

class RemoteStoreError(PdvError):
    """Transient failure talking to the data store (network, constraint, timeout)."""
    def __init__(self, message="Erro de comunicação com o servidor. Tente novamente.", payload=None):
        super().__init__(message, 503, payload)
