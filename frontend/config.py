import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    API_BASE_URL = os.environ.get('API_BASE_URL', 'http://localhost:8000/api/v1')
    PORTAL_URL = os.environ.get('PORTAL_URL', 'https://ir-comercio-portal-zcan.onrender.com')
    PAGE_SIZE = 50
    REQUEST_TIMEOUT = 10  # segundos; escritas usam o dobro
    INTERVALO_CONEXAO = 15  # verificação de conexão
    INTERVALO_REFRESH = 60  # recarga automática da página atual
    INTERVALO_HASH = 300  # descarta o hash da última busca para forçar re-render
