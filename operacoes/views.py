import logging

from django.conf import settings
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .catalog import PropertyRecord, find_operation, load_operations
from .exceptions import CatalogError
from .login import authenticate, investor_id_from_token, make_token
from .payloads import only_digits
from .serializers import (
    InvestorSerializer,
    LoginSerializer,
    OperationCostsSerializer,
    OperationSerializer,
)
from .services import get_aggregator, get_ledger_services

logger = logging.getLogger(__name__)


def _request_investor_id(request) -> str:
    from_query = only_digits(request.query_params.get("cpf"))
    if from_query:
        return from_query
    return investor_id_from_token(request.headers.get("Authorization"))


def _is_admin(investor_id: str) -> bool:
    return bool(investor_id) and investor_id == getattr(settings, "ADMIN_INVESTOR_ID", "00000000000")


def _enrich_operation(operation: PropertyRecord, aggregator, investor_id: str, is_admin: bool) -> dict:
    name = operation.property_name
    costs = aggregator.project_costs(operation.id, name)
    amount_invested = 0.0
    if investor_id and not is_admin:
        amount_invested = aggregator.investor_contribution(investor_id, name)
    profit_filter = None if is_admin else (investor_id or None)
    return {
        "id": operation.id,
        "property_name": name,
        "city": operation.city,
        "state": operation.state,
        "status": operation.status,
        "expected_return": operation.expected_return,
        "target_roi": operation.target_roi,
        "amount_invested": amount_invested or 0.0,
        "realized_profit": aggregator.realized_profit(name, profit_filter),
        "total_costs": operation.total_costs + costs["totalCosts"],
        "estimated_term": operation.estimated_term,
        "realized_term": operation.realized_term,
        "timeline": operation.timeline,
        "documents": operation.documents,
    }


class OperationListView(APIView):
    def get(self, request):
        try:
            operations = load_operations()
        except CatalogError as exc:
            logger.error("Erro ao carregar operacoes: %s", exc)
            return Response(
                {"error": "Erro ao carregar operações."},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        investor_id = _request_investor_id(request)
        is_admin = _is_admin(investor_id)
        aggregator = get_aggregator()

        rows = []
        for operation in operations:
            row = _enrich_operation(operation, aggregator, investor_id, is_admin)
            # Investidor so ve as operacoes em que tem aporte.
            if investor_id and not is_admin and row["amount_invested"] <= 0:
                continue
            rows.append(row)

        logger.info(
            "/operations respondendo %s operacoes (filtro CPF=%s)",
            len(rows),
            "ADMIN" if is_admin else investor_id or "SEM_FILTRO",
        )
        return Response(OperationSerializer(rows, many=True).data)


class OperationCostsView(APIView):
    def get(self, request, operation_id):
        try:
            operations = load_operations()
        except CatalogError as exc:
            logger.error("Erro ao carregar operacoes para custos: %s", exc)
            return Response(
                {"error": "Erro ao carregar operações para custos."},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        operation = find_operation(operations, operation_id)
        if operation is None:
            return Response(
                {"error": "Operação não encontrada."},
                status=status.HTTP_404_NOT_FOUND,
            )

        costs = get_aggregator().project_costs(operation.id, operation.property_name)
        payload = {
            "id": operation.id,
            "property_name": operation.property_name,
            "total_costs": operation.total_costs + costs["totalCosts"],
            "categories": costs["categories"],
            "items": costs["items"],
        }
        return Response(OperationCostsSerializer(payload).data)


class LoginView(APIView):
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"success": False, "message": "CPF e senha são obrigatórios."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        user = authenticate(
            serializer.validated_data["cpf"],
            serializer.validated_data["password"],
        )
        if user is None:
            return Response(
                {"success": False, "message": "CPF ou senha inválidos."},
                status=status.HTTP_401_UNAUTHORIZED,
            )

        return Response(
            {
                "success": True,
                "mode": "real",
                "token": make_token(user.cpf),
                "user": InvestorSerializer(user).data,
            }
        )


class LedgerCacheClearView(APIView):
    def post(self, request):
        investor_id = investor_id_from_token(request.headers.get("Authorization"))
        if not _is_admin(investor_id):
            return Response(
                {"success": False, "message": "Perfil sem permissao para limpar o cache."},
                status=status.HTTP_403_FORBIDDEN,
            )
        cleared = get_ledger_services().cache.clear_all()
        return Response({"success": True, "cleared": cleared})
