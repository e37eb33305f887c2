"""
Field catalog for the new corporate policy and renewal screens

Maps fixture keys (testdata/newCorporate.data.json, testdata/renewTata.data.json)
to the portal's controls. MUI selects are addressed through their generated
``#mui-component-select-<NAME>`` ids, inputs through their ``name``
attribute, with placeholder fallbacks where the portal is inconsistent. The
renewal screen exposes few stable ids, so its controls are found by ARIA
role and name, and its dates by the label next to them.
"""
from typing import List

from form_filler import DATE, DROPDOWN, TEXT, TOGGLE, FieldSpec


def _mui(name: str) -> str:
    return f"#mui-component-select-{name}"


def _input(name: str) -> str:
    return f'input[name="{name}"]'


def _combobox(name: str) -> str:
    """MUI select by accessible name (substring, case-insensitive)"""
    return f'role=combobox[name="{name}"]'


def _textbox(name: str) -> str:
    return f'role=textbox[name="{name}"]'


def _input_near(label: str) -> str:
    """First input inside the element that wraps the label text"""
    return f"text={label} >> xpath=.. >> input"


def policy_details(data: dict) -> List[FieldSpec]:
    return [
        FieldSpec("OEM", data.get("oem"), [_mui("FKOEM_ID")], DROPDOWN, label=r"^\s*OEM"),
        FieldSpec("Vehicle Cover", data.get("vehicleCover"), [_mui("CoverTypeId")], DROPDOWN,
                  label=r"Vehicle\s*Cover"),
        FieldSpec("Offline Quote", data.get("offlineQuote"), kind=TOGGLE, label=r"Offline\s*Quote"),
        FieldSpec("Policy Start Date", data.get("policyStartDate"), [_input("POLICY_START_DATE")], DATE),
    ]


def company_details(data: dict) -> List[FieldSpec]:
    return [
        FieldSpec("Company Salutation", data.get("companySalutation"),
                  [_mui("COMPANY_SALUTATION"), _input("COMPANY_SALUTATION")], DROPDOWN),
        FieldSpec("Company Name", data.get("companyName"), [
            _input("COMPANY_NAME"),
            'input[placeholder*="Company Name"]',
        ]),
        FieldSpec("Email", data.get("emailId"), [
            'input[placeholder="your_email@gmail.com"]',
            'input[placeholder="YOUR_EMAIL@GMAIL.COM"]',
            _input("COMPANY_EMAIL"),
            _input("EMAIL"),
            'input[type="email"]',
            'input[placeholder*="Email" i]',
        ]),
        FieldSpec("Mobile No", data.get("mobileNo"), [
            'input[placeholder="9999999999"]',
            _input("COMPANY_MOBILE"),
            _input("MOB_NO"),
            'input[placeholder*="Mobile"]',
            'input[placeholder*="Phone"]',
        ]),
        FieldSpec("Alternate Mobile No", data.get("alternateMobileNo"), [
            _input("COMPANY_ALT_MOBILE"),
            _input("ALT_MOBILE_NO"),
            'input[placeholder*="Alternate"]',
            'input[placeholder*="Alt Mobile"]',
        ]),
    ]


def vehicle_details(data: dict) -> List[FieldSpec]:
    registration = data.get("registrationNo") or {}
    return [
        FieldSpec("Chassis No", data.get("vin"), [_input("ChassisNo")]),
        FieldSpec("Engine No", data.get("engineNo"), [_input("EngineNo")]),
        FieldSpec("Built Type", data.get("builtType"), [
            _mui("FKBuiltType_ID"),
            _mui("BuiltType"),
            '[data-testid="built-type"]',
        ], DROPDOWN, label=r"Built\s*Type"),
        FieldSpec("Make", data.get("make"), [_mui("MakeId")], DROPDOWN),
        FieldSpec("Model", data.get("model"), [_mui("ModelId")], DROPDOWN),
        FieldSpec("Variant", data.get("variant"), [_mui("VariantId")], DROPDOWN),
        FieldSpec("Year of Manufacture", data.get("yearOfManufacture"), [_mui("DateofManufacture")],
                  DROPDOWN, numeric=True),
        FieldSpec("Registration City", data.get("registrationCity"), [_mui("RTOId")], DROPDOWN),
        FieldSpec("Customer Residence State", data.get("customerResidenceState"), [_mui("IsuredStateId")],
                  DROPDOWN),
        FieldSpec("GSTIN", data.get("gstin"), [
            _input("GSTIN"),
            'input[placeholder*="GST" i]',
        ]),
        FieldSpec("Registration State RTO", registration.get("stateCode"), [
            'input[placeholder="DL-09"]',
            'input[aria-label="Registration State RTO"]',
            _input("REG_STATE_RTO"),
        ]),
        FieldSpec("Registration Series", registration.get("rtoCode"), [
            'input[placeholder="RAA"]',
            'input[aria-label="Registration Series"]',
            _input("REG_SERIES"),
        ]),
        FieldSpec("Registration Number", registration.get("number"), [
            'input[placeholder="5445"]',
            'input[aria-label="Registration Number"]',
            _input("REG_NUMBER"),
        ]),
        FieldSpec("Test Vehicle", data.get("testVehicle"), kind=TOGGLE, label=r"Test\s*Vehicle"),
    ]


def additional_discounts(data: dict) -> List[FieldSpec]:
    return [
        FieldSpec("NCB Carry Forward", data.get("ncbCarryForward"), kind=TOGGLE, label=r"NCB\s*Carry\s*Forward"),
        FieldSpec("Entitled NCB %", data.get("entitledNcbPercent"), [_mui("NCBLevel")], DROPDOWN,
                  numeric=True, label=r"Entitled\s*NCB\s*%"),
        FieldSpec("Voluntary Excess", data.get("voluntaryExcess"), kind=TOGGLE, label=r"Voluntary\s*Excess"),
        FieldSpec("Voluntary Excess Amount", data.get("voluntaryExcessAmount"), [_mui("VoluntaryExcess")],
                  DROPDOWN, numeric=True),
        FieldSpec("AAI Membership", data.get("aaiMembership"), kind=TOGGLE, label=r"AAI\s*Membership"),
        FieldSpec("Handicapped", data.get("handicapped"), kind=TOGGLE, label=r"Handicapped"),
        FieldSpec("Anti Theft", data.get("antiTheft"), kind=TOGGLE, label=r"Anti\s*Theft"),
    ]


def proposer_details(data: dict) -> List[FieldSpec]:
    return [
        FieldSpec("Salutation", data.get("salutation"), [_mui("SALUTATION"), '[name="SALUTATION"]'], DROPDOWN),
        FieldSpec("First Name", data.get("firstName"), [_input("FIRST_NAME")]),
        FieldSpec("State", data.get("state"), [_mui("STATE_ID")], DROPDOWN),
        FieldSpec("City", data.get("city"), [_mui("CITY_ID")], DROPDOWN),
        FieldSpec("Pincode", data.get("pincode"), [_input("PIN")]),
        FieldSpec("PAN No", data.get("panNo"), [_input("PAN_NO")]),
    ]


def aa_membership_details(data: dict) -> List[FieldSpec]:
    return [
        FieldSpec("Association Name", data.get("associationName"), [_mui("ASSOCIATION_NAME")], DROPDOWN),
        FieldSpec("Membership No", data.get("membershipNo"), [_input("MEMBERSHIP_NO")]),
        FieldSpec("Validity Month", data.get("invalidityMonth"), [_mui("AAMonth")], DROPDOWN),
        FieldSpec("Validity Year", data.get("year"), [_input("AAYear")]),
    ]


def ncb_carry_forward_details(data: dict) -> List[FieldSpec]:
    return [
        FieldSpec("Previous Make", data.get("make"), [_input("PREV_VEH_MAKE")]),
        FieldSpec("Previous Model", data.get("model"), [_input("PREV_VEH_MODEL")]),
        FieldSpec("Previous Variant", data.get("variant"), [_input("PREV_VEH_VARIANT_NO")]),
        FieldSpec("Previous Year of Manufacture", data.get("yearOfManufacture"), [_mui("PREV_VEH_MANU_YEAR")],
                  DROPDOWN, numeric=True),
        FieldSpec("Previous Chassis No", data.get("chassisNo"), [_input("PREV_VEH_CHASSIS_NO")]),
        FieldSpec("Previous Engine No", data.get("engineNo"), [_input("PREV_VEH_ENGINE_NO")]),
        FieldSpec("Invoice Date", data.get("invoiceDate"), [_input("PREV_VEH_INVOICEDATE")], DATE),
        FieldSpec("Previous Registration No", data.get("registrationNo"), [_input("PREV_VEH_REG_NO")]),
        FieldSpec("Previous Policy No", data.get("previousPolicyNo"), [_input("PREV_VEH_POLICY_NONVISOF")]),
        FieldSpec("NCB Document Submitted", data.get("ncbDocumentSubmitted"), kind=TOGGLE,
                  label=r"NCB\s*Document\s*Submitted"),
        FieldSpec("Policy Period From", data.get("policyPeriodFrom"), [_input("PREV_VEH_POLICYSTARTDATE")], DATE),
        FieldSpec("Policy Period To", data.get("policyPeriodTo"), [_input("PREV_VEH_POLICYENDDATE")], DATE),
        FieldSpec("Previous Insurer", data.get("insuranceCompany"), [_mui("PREV_VEH_IC")], DROPDOWN),
        FieldSpec("Insurer Office Address", data.get("officeAddress"), [_input("PREV_VEH_ADDRESS")]),
    ]


def nominee_details(data: dict) -> List[FieldSpec]:
    return [
        FieldSpec("Nominee Name", data.get("nomineeName"), [_input("NomineeName")]),
        FieldSpec("Nominee Age", data.get("nomineeAge"), [_input("NomineeAge")]),
        FieldSpec("Nominee Relation", data.get("nomineeRelation"), [_mui("NomineeRelation")], DROPDOWN),
        FieldSpec("Nominee Gender", data.get("nomineeGender"), [_mui("NomineeGender")], DROPDOWN),
    ]


def payment_details(data: dict) -> List[FieldSpec]:
    return [
        FieldSpec("Payment Mode", data.get("paymentMode"), [_mui("PAYMENT_MODE")], DROPDOWN),
        FieldSpec("DP Name", data.get("dpName"), [_mui("AgentID")], DROPDOWN),
    ]


def previous_policy_details(data: dict) -> List[FieldSpec]:
    """Renewal screen; the previous policy number must come first, it unlocks OEM"""
    return [
        FieldSpec("Previous Policy No", data.get("prevPolicyNo"), [
            _textbox("Previous Policy No"),
            'input[placeholder*="Previous Policy" i]',
        ]),
        FieldSpec("OEM", data.get("oem"), [_combobox("Select OEM"), _mui("FKOEM_ID")], DROPDOWN,
                  label=r"^\s*OEM"),
        FieldSpec("Previous Vehicle Cover", data.get("prevVehicleCover"),
                  [_combobox("Select Previous Vehicle Cover")], DROPDOWN,
                  label=r"Previous\s*Vehicle\s*Cover"),
        FieldSpec("Previous NCB %", data.get("ncb"), [_mui("OLD_POL_NCB_LEVEL")], DROPDOWN,
                  numeric=True, label=r"Previous\s*NCB\s*%"),
        FieldSpec("Previous OD Policy IC", data.get("prevPolicyIC"),
                  [_combobox("Select Previous OD Policy IC")], DROPDOWN,
                  label=r"Previous\s*OD\s*Policy\s*IC"),
        FieldSpec("Vehicle Cover", data.get("vehicleCover"), [_combobox("Select Vehicle Cover"), _mui("CoverTypeId")],
                  DROPDOWN, label=r"^\s*Vehicle\s*Cover"),
        FieldSpec("OD Policy Expiry Date", data.get("odPolicyExpiryDate"),
                  [_input_near("OD Policy Expiry Date")], DATE),
        FieldSpec("TP Policy Expiry Date", data.get("tpPolicyExpiryDate"),
                  [_input_near("TP Policy Expiry Date")], DATE),
    ]


def renewal_customer_details(data: dict) -> List[FieldSpec]:
    return [
        FieldSpec("Salutation", data.get("salutation"), [_combobox("Select Salutation"), _mui("SALUTATION")],
                  DROPDOWN),
        FieldSpec("First Name", data.get("firstName"), [_textbox("First Name"), _input("FIRST_NAME")]),
        FieldSpec("Email", data.get("email"), [_textbox("Email Id"), _input("EMAIL")]),
        FieldSpec("Mobile No", data.get("mobile"), [_textbox("Mobile No"), _input("MOB_NO")]),
    ]


def renewal_vehicle_details(data: dict) -> List[FieldSpec]:
    return [
        FieldSpec("Make", data.get("make"), [_combobox("Select Make"), _mui("MakeId")], DROPDOWN),
        FieldSpec("Model", data.get("model"), [_combobox("Select Model"), _mui("ModelId")], DROPDOWN),
        FieldSpec("Variant", data.get("variant"), [_combobox("Select Variant"), _mui("VariantId")], DROPDOWN),
        FieldSpec("Year of Manufacture", data.get("year"),
                  [_combobox("Select Year of Manufacture"), _mui("DateofManufacture")], DROPDOWN, numeric=True),
        FieldSpec("Registration City", data.get("registrationCity"),
                  [_combobox("Select Registration City"), _mui("RTOId")], DROPDOWN),
        FieldSpec("Customer Residence State", data.get("customerState"),
                  [_combobox("Select Customer Residence State"), _mui("IsuredStateId")], DROPDOWN),
        FieldSpec("Invoice Date", data.get("invoiceDate"), [_input_near("Invoice Date")], DATE),
        FieldSpec("Registration Date", data.get("registrationDate"), [_input_near("Registration Date")], DATE),
    ]


# (section title, fixture key, builder) for the sections filled before Get Quotes
QUOTE_SECTIONS = [
    ("Policy Details", "policyDetails", policy_details),
    ("Company Details", "companyDetails", company_details),
    ("Vehicle Details", "vehicleDetails", vehicle_details),
    ("Additional Discounts", "additionalDiscounts", additional_discounts),
]

# Sections on the proposal page reached through BUY NOW; payment is retried separately
PROPOSAL_SECTIONS = [
    ("Proposal Details", "proposerDetails", proposer_details),
    ("AA Membership Details", "aaMembershipDetails", aa_membership_details),
    ("NCB Carry Forward Details", "ncbCarryForwardDetails", ncb_carry_forward_details),
    ("Nominee Details", "nomineeDetails", nominee_details),
]

# Renewal sections after the previous policy lookup, which is filled on its own
RENEWAL_SECTIONS = [
    ("Customer Details", "customerDetails", renewal_customer_details),
    ("Vehicle Details", "vehicleDetails", renewal_vehicle_details),
    ("Additional Discounts", "additionalDiscounts", additional_discounts),
]
