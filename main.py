# -*- coding: utf-8 -*-
"""
Arquivo principal da aplicação FastAPI para o controle de estoque.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import func
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException

from estoque.acessos import ContadorAcessos, criar_middleware, reportar_periodicamente
from estoque.auth import verificar_sessao
from estoque.config import Config
from estoque.database import Base, engine, get_db
from estoque.erros import AutenticacaoError, EstoqueError
from estoque.models import grupo, movimentacao, produto, sequencia  # noqa: F401 (registra as tabelas)
from estoque.models.produto import Produto
from estoque.routes import estoque_fastapi, grupos_fastapi, movimentacoes_fastapi

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    filename=Config.LOG_FILE
)
logger = logging.getLogger(__name__)

# Cria as tabelas no banco de dados com tratamento de erros
try:
    Base.metadata.create_all(bind=engine)
    logger.info("Tabelas criadas com sucesso!")
except Exception as e:
    logger.error(f"Erro ao criar tabelas: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    relatorio = asyncio.create_task(reportar_periodicamente(contador_acessos))
    yield
    relatorio.cancel()


env = Config.ENVIRONMENT

docs_url = "/docs" if env != "production" else None
redoc_url = "/redoc" if env != "production" else None

# Inicializa a aplicação FastAPI
app = FastAPI(
    title="API Controle de Estoque",
    description="API para gerenciamento de estoque: produtos, grupos e movimentações",
    version="1.0.0",
    docs_url=docs_url,
    redoc_url=redoc_url,
    openapi_url="/openapi.json" if env != "production" else None,
    lifespan=lifespan,
)

origins = [
    Config.FRONTEND_URL,
    "http://localhost:3002",
    "http://localhost",
    "http://127.0.0.1",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "HEAD", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Session-Token"],
)

contador_acessos = ContadorAcessos(Config.ACCESS_REPORT_INTERVAL)
app.middleware("http")(criar_middleware(contador_acessos))


# --- TRATAMENTO DE ERROS ---
# Toda resposta de erro sai como {"error": mensagem}

@app.exception_handler(AutenticacaoError)
async def autenticacao_handler(request: Request, exc: AutenticacaoError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.mensagem, "redirectToLogin": True},
    )


@app.exception_handler(EstoqueError)
async def estoque_error_handler(request: Request, exc: EstoqueError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.mensagem}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.mensagem})


@app.exception_handler(RequestValidationError)
async def validation_handler(request: Request, exc: RequestValidationError):
    erros = exc.errors()
    mensagem = "Dados inválidos"
    if erros:
        campo = ".".join(str(p) for p in erros[0].get("loc", ()) if p != "body")
        mensagem = f"Dados inválidos: {campo} - {erros[0].get('msg')}" if campo else mensagem
    return JSONResponse(status_code=400, content={"error": mensagem})


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(Exception)
async def erro_inesperado_handler(request: Request, exc: Exception):
    logger.exception(f"Erro inesperado em {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Erro interno do servidor"})


# Montagem dos routers (todos exigem sessão válida)
sessao_obrigatoria = [Depends(verificar_sessao)]

app.include_router(estoque_fastapi.router, prefix="/api/v1/estoque", dependencies=sessao_obrigatoria)
app.include_router(grupos_fastapi.router, prefix="/api/v1/grupos", dependencies=sessao_obrigatoria)
app.include_router(movimentacoes_fastapi.router, prefix="/api/v1/movimentacoes", dependencies=sessao_obrigatoria)


@app.get("/health", tags=["Root"])
def health(db: Session = Depends(get_db)):
    try:
        db.query(func.count(Produto.id)).scalar()
        conectado = True
    except Exception as e:
        logger.error(f"Health check sem banco: {e}")
        conectado = False
    return {
        "status": "healthy" if conectado else "unhealthy",
        "database": "connected" if conectado else "disconnected",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/", tags=["Root"])
async def root():
    return {
        "mensagem": "API Controle de Estoque",
        "documentacao": "/docs",
        "endpoints": [
            {"estoque": "/api/v1/estoque"},
            {"grupos": "/api/v1/grupos"},
            {"movimentacoes": "/api/v1/movimentacoes"},
            {"health": "/health"}
        ]
    }
