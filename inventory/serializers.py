from rest_framework import serializers
from django.utils import timezone
from .models import Account, Drug, DrugCategory, DrugName, DrugType


class AccountSerializer(serializers.ModelSerializer):
    class Meta:
        model = Account
        fields = ['id', 'name', 'role', 'parent', 'license_number', 'address']


class DrugSerializer(serializers.ModelSerializer):
    creator_name = serializers.CharField(source='created_by.name', read_only=True)
    category = serializers.ChoiceField(
        choices=DrugCategory.choices, required=False, allow_null=True, allow_blank=True
    )
    days_until_expiry = serializers.SerializerMethodField()

    class Meta:
        model = Drug
        fields = [
            'id', 'drug_type', 'name', 'batch_no', 'description', 'stock',
            'mfg_date', 'exp_date', 'price', 'category', 'created_by',
            'creator_name', 'days_until_expiry', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_by', 'created_at', 'updated_at']
        # The (created_by, batch_no) constraint is checked in validate(),
        # created_by being filled in by the view
        validators = []

    def get_days_until_expiry(self, obj):
        return (obj.exp_date - timezone.localdate()).days

    def validate_category(self, value):
        # Blank and null both mean "no category"
        return value or None

    def validate(self, attrs):
        mfg_date = attrs.get('mfg_date', getattr(self.instance, 'mfg_date', None))
        exp_date = attrs.get('exp_date', getattr(self.instance, 'exp_date', None))
        if mfg_date and exp_date and mfg_date >= exp_date:
            raise serializers.ValidationError(
                {'exp_date': 'Manufacturing date must be before expiration date'}
            )

        owner = self.context.get('owner') or getattr(self.instance, 'created_by', None)
        batch_no = attrs.get('batch_no')
        if owner is not None and batch_no:
            duplicates = Drug.objects.filter(created_by=owner, batch_no=batch_no)
            if self.instance is not None:
                duplicates = duplicates.exclude(pk=self.instance.pk)
            if duplicates.exists():
                raise serializers.ValidationError(
                    {'batch_no': f"Batch number '{batch_no}' already exists for this account"}
                )
        return attrs


class DrugTypeSerializer(serializers.ModelSerializer):
    type_name = serializers.CharField(
        max_length=100,
        error_messages={'required': 'Type name is required', 'blank': 'Type name is required'},
    )

    class Meta:
        model = DrugType
        fields = ['id', 'type_name', 'created_at']

    def validate_type_name(self, value):
        value = value.strip()
        if DrugType.objects.filter(type_name__iexact=value).exists():
            raise serializers.ValidationError(f"Drug type '{value}' already exists")
        return value


class DrugNameSerializer(serializers.ModelSerializer):
    type_id = serializers.PrimaryKeyRelatedField(source='drug_type', queryset=DrugType.objects.all())

    class Meta:
        model = DrugName
        fields = ['id', 'type_id', 'name', 'created_at']
        # (drug_type, name) uniqueness is checked in validate()
        validators = []

    def validate(self, attrs):
        if DrugName.objects.filter(drug_type=attrs['drug_type'], name__iexact=attrs['name'].strip()).exists():
            raise serializers.ValidationError({'name': f"Drug name '{attrs['name']}' already exists for this type"})
        attrs['name'] = attrs['name'].strip()
        return attrs
