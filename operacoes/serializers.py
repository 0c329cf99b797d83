from rest_framework import serializers


class LoginSerializer(serializers.Serializer):
    cpf = serializers.CharField(trim_whitespace=True)
    password = serializers.CharField(trim_whitespace=True)


class InvestorSerializer(serializers.Serializer):
    id = serializers.CharField(source="cpf")
    cpf = serializers.CharField()
    name = serializers.CharField()
    email = serializers.SerializerMethodField()

    def get_email(self, obj):
        return f"{obj.cpf}@triade-invest.local"


class OperationSerializer(serializers.Serializer):
    id = serializers.CharField()
    propertyName = serializers.CharField(source="property_name")
    city = serializers.CharField()
    state = serializers.CharField()
    status = serializers.CharField()
    expectedReturn = serializers.FloatField(source="expected_return")
    roi = serializers.FloatField(source="target_roi")
    amountInvested = serializers.FloatField(source="amount_invested")
    realizedProfit = serializers.FloatField(source="realized_profit")
    totalCosts = serializers.FloatField(source="total_costs")
    estimatedTerm = serializers.CharField(source="estimated_term", allow_null=True)
    realizedTerm = serializers.CharField(source="realized_term", allow_null=True)
    timeline = serializers.DictField()
    documents = serializers.DictField()


class CostItemSerializer(serializers.Serializer):
    value = serializers.FloatField()
    categoryCode = serializers.CharField()
    categoryDescription = serializers.CharField()
    cpfCnpjCliente = serializers.CharField(allow_blank=True)
    clienteNome = serializers.CharField(allow_blank=True)


class CostCategorySerializer(serializers.Serializer):
    categoryCode = serializers.CharField()
    categoryDescription = serializers.CharField()
    total = serializers.FloatField()
    items = CostItemSerializer(many=True)


class OperationCostsSerializer(serializers.Serializer):
    id = serializers.CharField()
    propertyName = serializers.CharField(source="property_name")
    totalCosts = serializers.FloatField(source="total_costs")
    categories = CostCategorySerializer(many=True)
    items = CostItemSerializer(many=True)
