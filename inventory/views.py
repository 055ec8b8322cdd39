from datetime import timedelta
import logging

from django.conf import settings
from django.utils import timezone
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .importer import DrugImporter, read_csv_rows
from .models import Drug, DrugName, DrugType
from .pagination import DrugPagination
from .permissions import HasAccount, IsAdminAccount, get_account
from .search import fuzzy_search
from .serializers import AccountSerializer, DrugNameSerializer, DrugSerializer, DrugTypeSerializer

# Configuration du logger
logger = logging.getLogger(__name__)

READ_ACTIONS = ('list', 'retrieve')


class AccountMeView(APIView):
    """
    Compte de l'appelant et, pour une pharmacie, l'institut auquel elle est rattachée.
    """
    permission_classes = [IsAuthenticated, HasAccount]

    def get(self, request, *args, **kwargs):
        account = get_account(request)
        institute = account.institute
        return Response({
            'status': True,
            'account': AccountSerializer(account).data,
            'institute': AccountSerializer(institute).data if institute else None,
        })


class DrugViewSet(viewsets.ModelViewSet):
    """
    ViewSet pour gérer le stock de médicaments d'un compte.

    Reads accept `?created_by=<account id>` so a pharmacy can browse the
    drugs of its institute; writes are always limited to the caller's own
    drugs unless the caller is an admin.
    """
    serializer_class = DrugSerializer
    permission_classes = [IsAuthenticated, HasAccount]
    lookup_value_regex = r'\d+'

    def get_queryset(self):
        account = get_account(self.request)
        queryset = Drug.objects.select_related('created_by')

        created_by = self.request.query_params.get('created_by')
        if self.action in READ_ACTIONS and created_by:
            queryset = queryset.filter(created_by_id=created_by)
        elif not account.is_admin:
            queryset = queryset.filter(created_by=account)

        if self.action == 'list':
            if self.request.query_params.get('in_stock') in ('1', 'true', 'True'):
                queryset = queryset.filter(stock__gt=0)
            category = self.request.query_params.get('category')
            if category:
                queryset = queryset.filter(category=category.upper())

        return queryset

    def get_serializer_context(self):
        context = super().get_serializer_context()
        if self.action == 'create':
            context['owner'] = get_account(self.request)
        return context

    def list(self, request, *args, **kwargs):
        created_by = request.query_params.get('created_by')
        if created_by and not created_by.isdigit():
            return Response(
                {'status': False, 'message': 'created_by must be an account id'},
                status=status.HTTP_400_BAD_REQUEST
            )

        drugs = self.get_queryset()
        search = request.query_params.get('search', '')
        if search.strip():
            drugs = fuzzy_search(drugs, search, min_score=settings.DRUG_SEARCH_MIN_SCORE)

        serializer = self.get_serializer(drugs, many=True)
        return Response({'status': True, 'drugs': serializer.data})

    def perform_create(self, serializer):
        account = get_account(self.request)
        drug = serializer.save(created_by=account)
        logger.info(f"Drug {drug.pk} ({drug.name} / {drug.batch_no}) created by account {account.pk}")

    def destroy(self, request, *args, **kwargs):
        drug = self.get_object()
        data = self.get_serializer(drug).data
        drug.delete()
        logger.info(f"Drug {data['id']} deleted by account {get_account(request).pk}")
        return Response({'message': 'Drug deleted successfully', 'deletedDrug': data})

    @action(detail=False, methods=['get'])
    def expiring(self, request):
        """
        Médicaments en stock qui expirent dans les `days` prochains jours.

        GET /api/drugs/expiring/?days=30&page=1&limit=10
        """
        try:
            days = int(request.query_params.get('days', settings.EXPIRY_WARNING_DAYS))
        except (TypeError, ValueError):
            return Response(
                {'status': False, 'message': 'Invalid days parameter'},
                status=status.HTTP_400_BAD_REQUEST
            )
        if days < 0:
            return Response(
                {'status': False, 'message': 'Invalid days parameter'},
                status=status.HTTP_400_BAD_REQUEST
            )

        account = get_account(request)
        today = timezone.localdate()
        queryset = Drug.objects.select_related('created_by').filter(
            exp_date__gte=today,
            exp_date__lte=today + timedelta(days=days),
            stock__gt=0,
        ).order_by('exp_date', 'name')
        if not account.is_admin:
            queryset = queryset.filter(created_by=account)

        paginator = DrugPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        response = paginator.get_paginated_response(self.get_serializer(page, many=True).data)
        response.data['days_threshold'] = days
        return response

    @action(
        detail=False,
        methods=['post'],
        url_path='import',
        parser_classes=[MultiPartParser, FormParser],
    )
    def import_drugs(self, request):
        """
        Import CSV de médicaments, ligne par ligne.

        POST /api/drugs/import/
        Body (form-data):
            - file: CSV (Drug Type, Name, Batch No, Description, Stock,
              Manufacturing Date, Expiration Date, Price, Category)

        Returns:
            {
                "status": true,
                "message": "CSV import completed with 9 successful records and 1 errors",
                "successCount": 9,
                "errors": [{"row": 3, "error": "...", "data": {...}}]
            }
        """
        if 'file' not in request.FILES:
            logger.warning("Import CSV sans fichier")
            return Response(
                {'status': False, 'message': 'No file uploaded'},
                status=status.HTTP_400_BAD_REQUEST
            )

        account = get_account(request)
        upload = request.FILES['file']

        try:
            rows = read_csv_rows(upload)
        except (ValueError, UnicodeError) as e:
            logger.warning(f"Fichier CSV illisible ({upload.name}): {e}")
            return Response(
                {'status': False, 'message': f'Failed to read CSV file: {e}'},
                status=status.HTTP_400_BAD_REQUEST
            )

        max_rows = settings.DRUG_IMPORT_MAX_ROWS
        if len(rows) > max_rows:
            return Response(
                {'status': False, 'message': f'CSV file has {len(rows)} rows, the limit is {max_rows}'},
                status=status.HTTP_400_BAD_REQUEST
            )

        logger.info(f"Import CSV reçu: {upload.name}, {len(rows)} ligne(s), compte {account.pk}")

        try:
            outcome = DrugImporter(account).reconcile(rows)
        except Exception as e:
            logger.exception(f"Erreur inattendue lors de l'import CSV: {str(e)}")
            return Response(
                {'status': False, 'message': 'Failed to process CSV file'},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        return Response(
            {'status': True, 'message': outcome.message, **outcome.as_dict()},
            status=status.HTTP_200_OK
        )


class DrugTypeViewSet(mixins.CreateModelMixin,
                      mixins.DestroyModelMixin,
                      viewsets.GenericViewSet):
    """
    Catalogue des types et noms de médicaments utilisé par les formulaires de saisie.

    GET    /api/drug-types/              -> tous les types
    GET    /api/drug-types/<id>/names/   -> noms d'un type
    POST   /api/drug-types/              -> admin
    DELETE /api/drug-types/<id>/         -> admin, refusé si des noms y sont rattachés
    """
    queryset = DrugType.objects.all()
    serializer_class = DrugTypeSerializer
    lookup_value_regex = r'\d+'

    def get_permissions(self):
        if self.action in ('list', 'names'):
            return [IsAuthenticated(), HasAccount()]
        return [IsAuthenticated(), IsAdminAccount()]

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response({'status': True, 'drugTypes': serializer.data})

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {'status': False, 'message': 'Invalid drug type', 'errors': serializer.errors},
                status=status.HTTP_400_BAD_REQUEST
            )
        drug_type = serializer.save()
        logger.info(f"Drug type {drug_type.pk} ({drug_type.type_name}) added")
        return Response(
            {'status': True, 'message': 'Drug type added successfully', 'drugType': serializer.data},
            status=status.HTTP_201_CREATED
        )

    def destroy(self, request, *args, **kwargs):
        drug_type = self.get_object()
        if drug_type.names.exists():
            return Response(
                {'status': False, 'message': 'Cannot delete drug type that has associated drugs'},
                status=status.HTTP_400_BAD_REQUEST
            )
        data = self.get_serializer(drug_type).data
        drug_type.delete()
        return Response({'status': True, 'message': 'Drug type deleted successfully', 'deletedType': data})

    @action(detail=True, methods=['get'])
    def names(self, request, pk=None):
        drug_type = self.get_object()
        serializer = DrugNameSerializer(drug_type.names.all(), many=True)
        return Response({'status': True, 'drugNames': serializer.data})


class DrugNameViewSet(mixins.CreateModelMixin,
                      mixins.DestroyModelMixin,
                      viewsets.GenericViewSet):
    """
    POST   /api/drug-names/       {"type_id": 1, "name": "Paracetamol 500mg"}
    DELETE /api/drug-names/<id>/
    """
    queryset = DrugName.objects.select_related('drug_type')
    serializer_class = DrugNameSerializer
    permission_classes = [IsAuthenticated, IsAdminAccount]
    lookup_value_regex = r'\d+'

    def create(self, request, *args, **kwargs):
        type_id = request.data.get('type_id')
        if not type_id or not request.data.get('name'):
            return Response(
                {'status': False, 'message': 'Type ID and name are required'},
                status=status.HTTP_400_BAD_REQUEST
            )
        if not str(type_id).isdigit() or not DrugType.objects.filter(pk=type_id).exists():
            return Response(
                {'status': False, 'message': 'Drug type not found'},
                status=status.HTTP_404_NOT_FOUND
            )

        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {'status': False, 'message': 'Invalid drug name', 'errors': serializer.errors},
                status=status.HTTP_400_BAD_REQUEST
            )
        serializer.save()
        return Response(
            {'status': True, 'message': 'Drug name added successfully', 'drugName': serializer.data},
            status=status.HTTP_201_CREATED
        )

    def destroy(self, request, *args, **kwargs):
        drug_name = self.get_object()
        data = self.get_serializer(drug_name).data
        drug_name.delete()
        return Response({'status': True, 'message': 'Drug name deleted successfully', 'deletedDrug': data})
