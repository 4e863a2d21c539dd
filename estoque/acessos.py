# -*- coding: utf-8 -*-
"""
Registro de acessos: uma linha de log por requisição e contadores locais ao
processo, reportados e zerados a cada ACCESS_REPORT_INTERVAL segundos, pela
próxima requisição ou pela tarefa de fundo iniciada com a aplicação.
"""
import asyncio
import logging
import threading
import time

logger = logging.getLogger("estoque.acessos")


def ip_do_cliente(request) -> str:
    encaminhado = request.headers.get("x-forwarded-for")
    if encaminhado:
        ip = encaminhado.split(",")[0].strip()
    else:
        ip = request.client.host if request.client else "desconhecido"
    return ip.replace("::ffff:", "")


class ContadorAcessos:
    def __init__(self, intervalo: int, relogio=time.monotonic):
        self.intervalo = intervalo
        self._relogio = relogio
        self._lock = threading.Lock()
        self._inicio = relogio()
        self.requisicoes = 0
        self.ips = set()

    def registrar(self, ip: str):
        with self._lock:
            self.requisicoes += 1
            self.ips.add(ip)
            if self._relogio() - self._inicio >= self.intervalo:
                self._reportar()

    def reportar_se_vencido(self):
        with self._lock:
            if self._relogio() - self._inicio >= self.intervalo:
                self._reportar()

    def _reportar(self):
        if self.requisicoes:
            logger.info("Último período: %s requisições de %s IPs únicos", self.requisicoes, len(self.ips))
        self.requisicoes = 0
        self.ips = set()
        self._inicio = self._relogio()


async def reportar_periodicamente(contador: ContadorAcessos, espera=None):
    """Fecha o período mesmo sem requisições novas chegando."""
    while True:
        await asyncio.sleep(espera or contador.intervalo)
        contador.reportar_se_vencido()


def criar_middleware(contador: ContadorAcessos):
    async def registrar_acesso(request, call_next):
        try:
            ip = ip_do_cliente(request)
            logger.info("%s - %s %s", ip, request.method, request.url.path)
            contador.registrar(ip)
        except Exception as e:  # registro de acesso nunca derruba a requisição
            logger.debug("Falha ao registrar acesso: %s", e)
        return await call_next(request)

    return registrar_acesso
