from rest_framework import serializers

LANGUAGES = [('en', 'English'), ('ar', 'Arabic')]


class ScopeCheckSerializer(serializers.Serializer):
    message = serializers.CharField(max_length=2000, trim_whitespace=True)
    language = serializers.ChoiceField(choices=LANGUAGES, default='en')


class AlertContextSerializer(serializers.Serializer):
    """What the screen knows that the server cannot: the attempt in progress"""
    order_id = serializers.UUIDField(required=False, allow_null=True)
    table_id = serializers.UUIDField(required=False, allow_null=True)
    payment_method = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    payment_amount = serializers.DecimalField(max_digits=12, decimal_places=3, required=False, allow_null=True)
    failed_payment_count = serializers.IntegerField(required=False, min_value=0)
    last_action = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    discount_reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    training_mode = serializers.BooleanField(required=False, default=False)
    kds_is_first_visit = serializers.BooleanField(required=False, default=False)
    language = serializers.ChoiceField(choices=LANGUAGES, default='en')
    top_only = serializers.BooleanField(required=False, default=False)


class AlertSerializer(serializers.Serializer):
    id = serializers.CharField()
    severity = serializers.CharField()
    title = serializers.DictField(child=serializers.CharField())
    message = serializers.DictField(child=serializers.CharField())
    suggestion = serializers.DictField(child=serializers.CharField(), allow_null=True)
    priority = serializers.IntegerField()
