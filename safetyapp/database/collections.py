# Collection Names (Firestore names predate this service and are kept as-is)
COLLECTIONS = {
    'machine': 'machine',
    'machine_transactions': 'machinetr',
    'machine_favourites': 'machineFavourites',
    'man_transactions': 'mantr',
    'trainings': 'trainings',
    'method_transactions': 'methodtr',
    'employees': 'employees',
    'vehicle_transactions': 'vehicleTr',
    'forms': 'forms',
    'vocabulary': 'vocabulary',
    'safety_stats': 'safetystat',
    'assets': 'asset',
    'asset_transactions': 'assettr',
}

# Collection Structure Documentation
COLLECTION_SCHEMAS = {
    'machine': {
        'fields': ['bu', 'site', 'type', 'id', 'kind', 'location', 'plantId', 'email', 'status', 'images', 'createdAt', 'createdBy', 'updatedAt', 'updatedBy'],
        'required': ['bu', 'site', 'type', 'id'],
        'indexes': ['bu', 'type', 'id', 'site']
    },
    'machinetr': {
        'fields': ['id', 'bu', 'site', 'type', 'inspector', 'timestamp', 'createdAt', 'remark', 'images', 'lat', 'lng'],
        'required': ['id', 'bu', 'type'],
        'indexes': ['bu', 'type', 'site', 'id', 'timestamp']
    },
    'machineFavourites': {
        'fields': [],
        'required': [],
        'indexes': []
    },
    'mantr': {
        'fields': ['id', 'bu', 'site', 'type', 'images', 'timestamp', 'createdAt', 'remark', 'alertNo'],
        'required': ['id', 'bu', 'type'],
        'indexes': ['bu', 'type', 'site', 'id']
    },
    'trainings': {
        'fields': ['empId', 'courseId', 'courseName', 'trainingDate', 'expirationDate', 'status'],
        'required': ['empId'],
        'indexes': ['empId']
    },
    'methodtr': {
        'fields': ['id', 'bu', 'type', 'images', 'timestamp', 'createdAt'],
        'required': ['id', 'type'],
        'indexes': ['id', 'type', 'bu']
    },
    'employees': {
        'fields': ['empId', 'fullName', 'bu', 'site', 'department', 'position'],
        'required': ['empId'],
        'indexes': ['empId']
    },
    'vehicleTr': {
        'fields': ['id', 'bu', 'type', 'name', 'position', 'department', 'site', 'eSite', 'status', 'company', 'trans'],
        'required': ['id', 'type'],
        'indexes': ['bu', 'id', 'type']
    },
    'forms': {
        'fields': ['bu', 'type', 'title', 'emoji', 'image', 'questions'],
        'required': ['bu', 'type'],
        'indexes': ['bu', 'type']
    },
    'vocabulary': {
        'fields': ['bu', 'name', 'flag', 'site', 'sites', 'choices', 'accept', 'howto', 'inspector', 'picture', 'remark', 'remarkr', 'submit'],
        'required': ['bu'],
        'indexes': ['bu']
    },
    'safetystat': {
        'fields': ['lastAccidentDate', 'bestRecord'],
        'required': [],
        'indexes': []
    },
    'asset': {
        'fields': ['asset', 'sub', 'bu', 'type', 'site', 'description', 'assetClass', 'quantity', 'uom', 'usefulLife', 'depreciationKey', 'bookVal', 'location', 'accumDep', 'OrdDepStartDate', 'capitalizedOn', 'acquisVal', 'department', 'plant', 'plantName', 'costCenter', 'costCenterOwner', 'plantLocation', 'uploadedAt'],
        'required': ['asset', 'bu', 'type'],
        'indexes': ['bu', 'type', 'site', 'asset', 'sub', 'plant', 'department', 'assetClass']
    },
    'assettr': {
        'fields': ['asset', 'sub', 'bu', 'type', 'site', 'date', 'inspector', 'status', 'qty', 'place', 'url', 'lat', 'lng', 'remark', 'qtyR', 'transferTo', 'uploadedAt'],
        'required': ['asset', 'bu', 'type'],
        'indexes': ['bu', 'type', 'asset', 'sub', 'uploadedAt']
    },
}
