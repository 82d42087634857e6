# Models package - database tables
from leadcapture.models.owner import Owner
from leadcapture.models.form import Form
from leadcapture.models.customer import Customer
from leadcapture.models.lead import Lead
