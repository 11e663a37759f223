from rest_framework import serializers

from .models import MenuCategory, MenuItem, ModifierGroup, ModifierOption, BranchMenuItem


def _restaurant_from(context):
    request = context.get('request')
    return getattr(request, 'restaurant', None) if request else None


class MenuCategorySerializer(serializers.ModelSerializer):
    items_count = serializers.SerializerMethodField()

    class Meta:
        model = MenuCategory
        fields = ['id', 'name', 'name_ar', 'sort_order', 'is_active', 'items_count', 'created_at']
        read_only_fields = ['created_at', 'items_count']

    def get_items_count(self, obj):
        return obj.items.filter(is_available=True).count()

    def validate_name(self, value):
        """Validate unique category name within restaurant"""
        restaurant = _restaurant_from(self.context)
        if restaurant is not None:
            queryset = MenuCategory.objects.filter(restaurant=restaurant, name=value)
            if self.instance:
                queryset = queryset.exclude(id=self.instance.id)
            if queryset.exists():
                raise serializers.ValidationError("Category with this name already exists in your restaurant.")
        return value


class ModifierOptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = ModifierOption
        fields = ['id', 'name', 'name_ar', 'price_adjustment', 'sort_order', 'is_active']


class ModifierGroupSerializer(serializers.ModelSerializer):
    options = ModifierOptionSerializer(many=True, required=False)

    class Meta:
        model = ModifierGroup
        fields = [
            'id', 'name', 'name_ar', 'selection_type', 'is_required',
            'max_selections', 'is_active', 'options', 'created_at'
        ]
        read_only_fields = ['created_at']

    def validate_name(self, value):
        """Validate unique modifier group name within restaurant"""
        restaurant = _restaurant_from(self.context)
        if restaurant is not None:
            queryset = ModifierGroup.objects.filter(restaurant=restaurant, name=value)
            if self.instance:
                queryset = queryset.exclude(id=self.instance.id)
            if queryset.exists():
                raise serializers.ValidationError("Modifier group with this name already exists in your restaurant.")
        return value

    def validate(self, attrs):
        selection_type = attrs.get('selection_type', getattr(self.instance, 'selection_type', 'single'))
        max_selections = attrs.get('max_selections')
        if selection_type == 'single' and max_selections not in (None, 1):
            raise serializers.ValidationError({'max_selections': "Single selection groups allow one option."})
        return attrs

    def create(self, validated_data):
        options_data = validated_data.pop('options', [])
        group = ModifierGroup.objects.create(**validated_data)
        for option_data in options_data:
            ModifierOption.objects.create(group=group, **option_data)
        return group

    def update(self, instance, validated_data):
        options_data = validated_data.pop('options', None)

        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()

        # Options are replaced as a whole when provided
        if options_data is not None:
            instance.options.all().delete()
            for option_data in options_data:
                ModifierOption.objects.create(group=instance, **option_data)

        return instance


class MenuItemListSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True)
    modifier_groups_detail = ModifierGroupSerializer(source='modifier_groups', many=True, read_only=True)

    class Meta:
        model = MenuItem
        fields = [
            'id', 'name', 'name_ar', 'description', 'price', 'category', 'category_name',
            'is_available', 'is_offer', 'is_favorite', 'sort_order', 'modifier_groups_detail'
        ]


class BranchMenuItemSerializer(serializers.ModelSerializer):
    branch_name = serializers.CharField(source='branch.name', read_only=True)

    class Meta:
        model = BranchMenuItem
        fields = ['id', 'branch', 'branch_name', 'menu_item', 'price', 'is_available']
        read_only_fields = ['menu_item']

    def validate_branch(self, value):
        restaurant = _restaurant_from(self.context)
        if restaurant is not None and value.restaurant_id != restaurant.id:
            raise serializers.ValidationError("Branch does not belong to your restaurant.")
        return value

    def validate_price(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("Price cannot be negative.")
        return value


class MenuItemDetailSerializer(MenuItemListSerializer):
    branch_overrides = BranchMenuItemSerializer(many=True, read_only=True)

    class Meta(MenuItemListSerializer.Meta):
        fields = MenuItemListSerializer.Meta.fields + ['branch_overrides', 'created_at', 'updated_at']


class MenuItemCreateUpdateSerializer(serializers.ModelSerializer):
    category = serializers.PrimaryKeyRelatedField(queryset=MenuCategory.objects.none())
    modifier_groups = serializers.PrimaryKeyRelatedField(
        queryset=ModifierGroup.objects.none(),
        many=True,
        required=False,
        allow_empty=True
    )

    class Meta:
        model = MenuItem
        fields = [
            'id', 'category', 'name', 'name_ar', 'description', 'price',
            'is_available', 'is_offer', 'is_favorite', 'sort_order', 'modifier_groups'
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        restaurant = _restaurant_from(self.context)
        if restaurant is not None:
            # Related objects are limited to the caller's restaurant
            self.fields['category'].queryset = MenuCategory.objects.filter(restaurant=restaurant)
            self.fields['modifier_groups'].child_relation.queryset = ModifierGroup.objects.filter(
                restaurant=restaurant, is_active=True
            )

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Price cannot be negative.")
        return value

    def create(self, validated_data):
        modifier_groups = validated_data.pop('modifier_groups', [])
        menu_item = MenuItem.objects.create(**validated_data)
        if modifier_groups:
            menu_item.modifier_groups.set(modifier_groups)
        return menu_item

    def update(self, instance, validated_data):
        modifier_groups = validated_data.pop('modifier_groups', None)

        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()

        if modifier_groups is not None:
            instance.modifier_groups.set(modifier_groups)

        return instance


class PublicMenuItemSerializer(serializers.ModelSerializer):
    price = serializers.SerializerMethodField()
    modifier_groups = serializers.SerializerMethodField()

    class Meta:
        model = MenuItem
        fields = ['id', 'name', 'name_ar', 'description', 'price', 'is_offer', 'modifier_groups']

    def get_price(self, obj):
        return str(obj.price_for_branch(self.context.get('branch')))

    def get_modifier_groups(self, obj):
        groups = obj.modifier_groups.filter(is_active=True).prefetch_related('options')
        return [
            {
                'id': str(group.id),
                'name': group.name,
                'name_ar': group.name_ar,
                'selection_type': group.selection_type,
                'is_required': group.is_required,
                'max_selections': group.max_selections,
                'options': ModifierOptionSerializer(
                    [option for option in group.options.all() if option.is_active], many=True
                ).data,
            }
            for group in groups
        ]
